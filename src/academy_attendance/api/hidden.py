'''
API endpoints for hiding roster rows from a month onwards.
'''
from typing import Annotated, Any
from fastapi import APIRouter, Depends

from ..models import roster as roster_models
from ..services.roster_service import RosterService


class HiddenRowsAPI:
    """
    A class to encapsulate the hidden-row endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/hidden",
            tags=["Hidden Rows"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "",
            self.list_hidden,
            methods=["GET"],
            response_model=list[roster_models.HiddenRowRead])
        self.router.add_api_route(
            "",
            self.hide_row,
            methods=["POST"],
            response_model=roster_models.HiddenRowRead)
        self.router.add_api_route(
            "",
            self.unhide_row,
            methods=["DELETE"],
            response_model=roster_models.HiddenRowRead)

    async def list_hidden(
        self,
        roster_service: Annotated[RosterService, Depends(RosterService)]
    ) -> list[Any]:
        return await roster_service.list_hidden_rows()

    async def hide_row(
        self,
        hide_data: roster_models.HideRowInput,
        roster_service: Annotated[RosterService, Depends(RosterService)]
    ) -> Any:
        """Hides the row from year/month onwards (default: the current month)."""
        return await roster_service.hide_row(
            hide_data.student_id,
            hide_data.subject,
            hide_data.year,
            hide_data.month
        )

    async def unhide_row(
        self,
        unhide_data: roster_models.UnhideRowInput,
        roster_service: Annotated[RosterService, Depends(RosterService)]
    ) -> Any:
        return await roster_service.unhide_row(unhide_data.student_id, unhide_data.subject)


# Instantiate the class and export its router
hidden_rows_api = HiddenRowsAPI()
router = hidden_rows_api.router
