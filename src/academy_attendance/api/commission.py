'''
API endpoints for teacher commissions.
'''
from typing import Annotated, Any
from fastapi import APIRouter, Depends, Query

from ..common.config import Settings
from ..common.security_utils import verify_admin_password
from ..models import billing as billing_models
from ..services.billing_service import BillingService
from ..services.dependencies import get_settings


class CommissionAPI:
    """
    A class to encapsulate the commission endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/commission",
            tags=["Commission"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "",
            self.list_commissions,
            methods=["GET"],
            response_model=list[billing_models.CommissionRow])
        self.router.add_api_route(
            "/summary",
            self.commission_overview,
            methods=["GET"],
            response_model=billing_models.CommissionOverview)
        self.router.add_api_route(
            "/teachers",
            self.list_teachers,
            methods=["GET"],
            response_model=list[billing_models.TeacherRead])
        self.router.add_api_route(
            "",
            self.set_commission,
            methods=["POST"],
            response_model=billing_models.CommissionRead)
        self.router.add_api_route(
            "/payment/toggle",
            self.toggle_payment,
            methods=["POST"],
            response_model=billing_models.TeacherPaymentRead)

    async def list_commissions(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> list[Any]:
        """One row per student under their primary teacher."""
        return await billing_service.compute_commissions(year, month)

    async def commission_overview(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> Any:
        return await billing_service.commission_overview(year, month)

    async def list_teachers(
        self,
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> list[Any]:
        return await billing_service.list_teachers()

    async def set_commission(
        self,
        commission_data: billing_models.CommissionSetInput,
        settings: Annotated[Settings, Depends(get_settings)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> Any:
        verify_admin_password(commission_data.password, settings.ADMIN_PASSWORD)
        return await billing_service.set_commission(
            commission_data.teacher_id,
            commission_data.student_id,
            commission_data.commission_per_class,
            commission_data.currency
        )

    async def toggle_payment(
        self,
        toggle_data: billing_models.TeacherPaymentToggleInput,
        settings: Annotated[Settings, Depends(get_settings)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> Any:
        verify_admin_password(toggle_data.password, settings.ADMIN_PASSWORD)
        return await billing_service.toggle_teacher_payment(
            toggle_data.teacher_id,
            toggle_data.student_id,
            toggle_data.year,
            toggle_data.month
        )


# Instantiate the class and export its router
commission_api = CommissionAPI()
router = commission_api.router
