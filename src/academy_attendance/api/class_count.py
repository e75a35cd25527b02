'''
API endpoint for class counts over a date range.
'''
import datetime
from typing import Annotated, Any, Optional
from fastapi import APIRouter, Depends, Query

from ..database.db_enums import AttendanceStatusEnum
from ..models import class_count as class_count_models
from ..services.class_count_service import ClassCountService


class ClassCountAPI:
    """
    A class to encapsulate the class-count endpoint.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/class-count",
            tags=["Class Count"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "",
            self.count_range,
            methods=["GET"],
            response_model=class_count_models.ClassCountRange)

    async def count_range(
        self,
        start_date: Annotated[datetime.date, Query(alias="startDate")],
        end_date: Annotated[datetime.date, Query(alias="endDate")],
        class_count_service: Annotated[ClassCountService, Depends(ClassCountService)],
        statuses: Annotated[Optional[list[AttendanceStatusEnum]], Query(description="Repeat the parameter for several statuses")] = None,
        teacher_name: Annotated[Optional[str], Query(alias="teacherName")] = None
    ) -> Any:
        """
        Counts matching attendance records per teacher and student.
        Records whose teacher cannot be resolved land under "Unknown Teacher".
        """
        return await class_count_service.count_range(start_date, end_date, statuses or [], teacher_name=teacher_name)


# Instantiate the class and export its router
class_count_api = ClassCountAPI()
router = class_count_api.router
