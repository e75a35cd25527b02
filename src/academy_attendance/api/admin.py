'''
API endpoint for checking the shared admin secret.
'''
from typing import Annotated
from fastapi import APIRouter, Depends

from ..common.config import Settings
from ..common.security_utils import verify_admin_password
from ..models.billing import AdminVerifyInput
from ..models.common import MessageResponse
from ..services.dependencies import get_settings


class AdminAPI:
    """
    A class to encapsulate the admin verification endpoint.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/admin",
            tags=["Admin"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/verify",
            self.verify,
            methods=["POST"],
            response_model=MessageResponse)

    async def verify(
        self,
        verify_data: AdminVerifyInput,
        settings: Annotated[Settings, Depends(get_settings)]
    ) -> MessageResponse:
        """Answers 401 unless the password matches the configured secret."""
        verify_admin_password(verify_data.password, settings.ADMIN_PASSWORD)
        return MessageResponse(message="Password verified")


# Instantiate the class and export its router
admin_api = AdminAPI()
router = admin_api.router
