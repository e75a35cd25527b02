'''
API endpoints for attendance marks, monthly summaries and notes.
'''
import datetime
from typing import Annotated, Any, Optional
from fastapi import APIRouter, Depends, Query

from ..common.exceptions import InvalidInputError
from ..database.db_enums import AttendanceStatusEnum
from ..models import attendance as attendance_models
from ..models.common import normalize_subject
from ..services.attendance_service import AttendanceService


class AttendanceAPI:
    """
    A class to encapsulate endpoints for the attendance ledger.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/attendance",
            tags=["Attendance"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/monthly",
            self.list_monthly,
            methods=["GET"],
            response_model=list[attendance_models.AttendanceRead])
        self.router.add_api_route(
            "",
            self.set_attendance,
            methods=["POST"],
            response_model=attendance_models.AttendanceRead)
        self.router.add_api_route(
            "/toggle",
            self.toggle_attendance,
            methods=["POST"],
            response_model=attendance_models.AttendanceRead)
        self.router.add_api_route(
            "",
            self.delete_attendance,
            methods=["DELETE"],
            response_model=attendance_models.AttendanceDeleted)

        # Summaries
        self.router.add_api_route(
            "/summary",
            self.monthly_summary,
            methods=["GET"],
            response_model=list[attendance_models.StudentMonthlySummary])
        self.router.add_api_route(
            "/summary/{student_id}",
            self.student_summary,
            methods=["GET"],
            response_model=attendance_models.StudentMonthlySummary)
        self.router.add_api_route(
            "/teachers",
            self.teacher_assignments,
            methods=["GET"],
            response_model=list[attendance_models.TeacherAssignmentRead])

        # Notes
        self.router.add_api_route(
            "/notes",
            self.list_notes,
            methods=["GET"],
            response_model=list[attendance_models.NoteRead])
        self.router.add_api_route(
            "/notes",
            self.set_note,
            methods=["POST"],
            response_model=attendance_models.NoteRead)

    async def list_monthly(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> list[Any]:
        return await attendance_service.list_for_month(year, month)

    async def set_attendance(
        self,
        attendance_data: attendance_models.AttendanceSetInput,
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> Any:
        """
        Sets present, absent or ta for one student, date and subject.
        Noshow can only be reached through /attendance/toggle.
        """
        if attendance_data.status == AttendanceStatusEnum.NOSHOW:
            raise InvalidInputError('Status must be "present", "absent", or "ta"')
        return await attendance_service.set_status(
            attendance_data.student_id,
            attendance_data.subject,
            attendance_data.date,
            attendance_data.status,
            notes=attendance_data.notes
        )

    async def toggle_attendance(
        self,
        toggle_data: attendance_models.AttendanceToggleInput,
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> Any:
        """
        Advances the mark one step: present, absent, ta, noshow, cleared.
        A cleared mark comes back with status null.
        """
        return await attendance_service.cycle(toggle_data.student_id, toggle_data.subject, toggle_data.date)

    async def delete_attendance(
        self,
        student_id: Annotated[int, Query(alias="studentId")],
        date: Annotated[datetime.date, Query()],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)],
        subject: Annotated[Optional[str], Query()] = None
    ) -> Any:
        record = await attendance_service.clear(student_id, normalize_subject(subject), date)
        return {"message": "Attendance deleted successfully", "record": record}

    async def monthly_summary(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> list[Any]:
        return await attendance_service.monthly_summary(year, month)

    async def student_summary(
        self,
        student_id: int,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> Any:
        return await attendance_service.student_summary(student_id, year, month)

    async def teacher_assignments(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> list[Any]:
        """Which teacher(s) each student had on each date, from the scheduler."""
        return await attendance_service.teacher_assignments_for_month(year, month)

    async def list_notes(
        self,
        year: Annotated[int, Query()],
        month: Annotated[int, Query(ge=1, le=12)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> list[Any]:
        return await attendance_service.list_notes_for_month(year, month)

    async def set_note(
        self,
        note_data: attendance_models.NoteSetInput,
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> Any:
        return await attendance_service.set_note(
            note_data.student_id,
            note_data.year,
            note_data.month,
            note_data.notes,
            subject=note_data.subject
        )


# Instantiate the class and export its router
attendance_api = AttendanceAPI()
router = attendance_api.router
