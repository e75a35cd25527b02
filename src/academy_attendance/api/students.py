'''
API endpoints for the resolved student roster and the subject list.
'''
from typing import Annotated, Any, Optional
from fastapi import APIRouter, Depends, Query

from ..models import roster as roster_models
from ..services.billing_service import BillingService
from ..services.roster_service import RosterService


class StudentsAPI:
    """
    A class to encapsulate the roster endpoints.
    """
    def __init__(self):
        self.router = APIRouter(tags=["Students"])
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/students",
            self.list_students,
            methods=["GET"],
            response_model=list[roster_models.StudentSubjectRow])
        self.router.add_api_route(
            "/subjects",
            self.list_subjects,
            methods=["GET"],
            response_model=list[str])

    async def list_students(
        self,
        roster_service: Annotated[RosterService, Depends(RosterService)],
        year: Annotated[Optional[int], Query(description="Billing year the hidden rows are evaluated against")] = None,
        month: Annotated[Optional[int], Query(ge=1, le=12)] = None
    ) -> list[Any]:
        """
        One row per student and subject. Without year/month every hidden
        row stays hidden.
        """
        return await roster_service.resolve_roster(year, month)

    async def list_subjects(
        self,
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> list[str]:
        """Distinct subjects of the active scheduler assignments."""
        return await billing_service.list_subjects()


# Instantiate the class and export its router
students_api = StudentsAPI()
router = students_api.router
