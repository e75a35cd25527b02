'''
API endpoints for the holiday calendar.
'''
from typing import Annotated, Any
from fastapi import APIRouter, Depends, Query, status

from ..common.config import Settings
from ..common.security_utils import verify_admin_password
from ..models import attendance as attendance_models
from ..services.dependencies import get_settings
from ..services.holiday_service import HolidayService


class HolidaysAPI:
    """
    A class to encapsulate the holiday endpoints.
    Reads are open, adding and deleting need the admin secret.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/holidays",
            tags=["Holidays"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "",
            self.list_holidays,
            methods=["GET"],
            response_model=list[attendance_models.HolidayRead])
        self.router.add_api_route(
            "/monthly",
            self.list_monthly,
            methods=["GET"],
            response_model=list[attendance_models.HolidayRead])
        self.router.add_api_route(
            "",
            self.add_holiday,
            methods=["POST"],
            status_code=status.HTTP_201_CREATED,
            response_model=attendance_models.HolidayRead)
        self.router.add_api_route(
            "/{holiday_id}",
            self.delete_holiday,
            methods=["DELETE"],
            response_model=attendance_models.HolidayDeleted)

    async def list_holidays(
        self,
        holiday_service: Annotated[HolidayService, Depends(HolidayService)]
    ) -> list[Any]:
        return await holiday_service.list_holidays()

    async def list_monthly(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        holiday_service: Annotated[HolidayService, Depends(HolidayService)]
    ) -> list[Any]:
        return await holiday_service.list_holidays_for_month(year, month)

    async def add_holiday(
        self,
        holiday_data: attendance_models.HolidayCreateInput,
        settings: Annotated[Settings, Depends(get_settings)],
        holiday_service: Annotated[HolidayService, Depends(HolidayService)]
    ) -> Any:
        """Adds a holiday; posting an existing date renames it."""
        verify_admin_password(holiday_data.password, settings.ADMIN_PASSWORD)
        return await holiday_service.add_holiday(holiday_data.date, holiday_data.name)

    async def delete_holiday(
        self,
        holiday_id: int,
        delete_data: attendance_models.HolidayDeleteInput,
        settings: Annotated[Settings, Depends(get_settings)],
        holiday_service: Annotated[HolidayService, Depends(HolidayService)]
    ) -> Any:
        verify_admin_password(delete_data.password, settings.ADMIN_PASSWORD)
        holiday = await holiday_service.delete_holiday(holiday_id)
        return {"message": "Holiday deleted successfully", "holiday": holiday}


# Instantiate the class and export its router
holidays_api = HolidaysAPI()
router = holidays_api.router
