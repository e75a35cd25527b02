'''
API endpoints for per-subject tuition billing.
'''
from typing import Annotated, Any
from fastapi import APIRouter, Depends, Query

from ..common.config import Settings
from ..common.security_utils import verify_admin_password
from ..models import billing as billing_models
from ..services.billing_service import BillingService
from ..services.dependencies import get_settings


class TuitionAPI:
    """
    A class to encapsulate the tuition endpoints.
    Every mutation is gated by the admin secret.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/tuition",
            tags=["Tuition"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/subjects",
            self.list_tuition,
            methods=["GET"],
            response_model=list[billing_models.BillingRow])
        self.router.add_api_route(
            "/subjects/summary",
            self.tuition_overview,
            methods=["GET"],
            response_model=billing_models.TuitionOverview)
        self.router.add_api_route(
            "/subjects",
            self.set_price,
            methods=["POST"],
            response_model=billing_models.PricingRead)
        self.router.add_api_route(
            "/subjects/payment/toggle",
            self.toggle_payment,
            methods=["POST"],
            response_model=billing_models.SubjectPaymentRead)
        self.router.add_api_route(
            "/subjects/add",
            self.add_subject,
            methods=["POST"],
            response_model=billing_models.SubjectAddResult)
        self.router.add_api_route(
            "/subjects",
            self.delete_subject,
            methods=["DELETE"],
            response_model=billing_models.SubjectDeleted)

    async def list_tuition(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> list[Any]:
        """
        Billing rows for the month. present_count is per student and is
        shared by all of that student's subject rows.
        """
        return await billing_service.compute_tuition(year, month)

    async def tuition_overview(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> Any:
        return await billing_service.tuition_overview(year, month)

    async def set_price(
        self,
        price_data: billing_models.SubjectPriceInput,
        settings: Annotated[Settings, Depends(get_settings)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> Any:
        verify_admin_password(price_data.password, settings.ADMIN_PASSWORD)
        return await billing_service.set_price(
            price_data.student_id,
            price_data.subject,
            price_data.price_per_class,
            price_data.currency
        )

    async def toggle_payment(
        self,
        toggle_data: billing_models.SubjectPaymentToggleInput,
        settings: Annotated[Settings, Depends(get_settings)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> Any:
        verify_admin_password(toggle_data.password, settings.ADMIN_PASSWORD)
        return await billing_service.toggle_payment(
            toggle_data.student_id,
            toggle_data.subject,
            toggle_data.year,
            toggle_data.month
        )

    async def add_subject(
        self,
        subject_data: billing_models.SubjectAddInput,
        settings: Annotated[Settings, Depends(get_settings)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> Any:
        """Adds a 0 PHP subject row for the student; an existing one is reported, not changed."""
        verify_admin_password(subject_data.password, settings.ADMIN_PASSWORD)
        return await billing_service.add_subject(subject_data.student_id, subject_data.subject)

    async def delete_subject(
        self,
        student_id: Annotated[int, Query(alias="studentId")],
        subject: Annotated[str, Query()],
        delete_data: billing_models.SubjectDeleteInput,
        settings: Annotated[Settings, Depends(get_settings)],
        billing_service: Annotated[BillingService, Depends(BillingService)]
    ) -> Any:
        """Deletes the subject row together with all of its payment records."""
        verify_admin_password(delete_data.password, settings.ADMIN_PASSWORD)
        return await billing_service.delete_subject(student_id, subject)


# Instantiate the class and export its router
tuition_api = TuitionAPI()
router = tuition_api.router
