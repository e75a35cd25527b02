'''
Shared base classes and field helpers for API models.
'''
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelInput(BaseModel):
    """
    Base for request bodies: the frontend sends camelCase keys
    (studentId, pricePerClass, ...), snake_case is accepted as well.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AdminInput(CamelInput):
    """Request bodies for admin-gated routes carry the shared secret."""
    password: Optional[str] = Field(default=None, repr=False)


def normalize_subject(value: Any) -> Any:
    """'' and whitespace-only subjects mean "no subject"."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class MessageResponse(BaseModel):
    message: str


OptionalSubject = Annotated[Optional[str], BeforeValidator(normalize_subject)]


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


RequiredSubject = Annotated[str, BeforeValidator(_strip), Field(min_length=1)]
