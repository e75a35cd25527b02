'''
Admin secret verification, decoupled from the settings object so the
configured value is always passed in explicitly.
'''
import secrets
from typing import Optional

from .exceptions import AdminAuthError
from .logger import log


def is_admin_password_valid(provided: Optional[str], configured: Optional[str]) -> bool:
    """
    Byte-for-byte, constant-time comparison of the provided secret against
    the configured one. No configured secret means nothing ever matches.
    """
    if not configured or provided is None:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), configured.encode("utf-8"))


def verify_admin_password(provided: Optional[str], configured: Optional[str]) -> None:
    """Raises AdminAuthError unless the provided secret matches."""
    if not is_admin_password_valid(provided, configured):
        if not configured:
            log.warning("Admin route called but ADMIN_PASSWORD is not configured.")
        else:
            log.warning("Admin route called with an invalid password.")
        raise AdminAuthError()
