'''
Attendance ledger: per (student, date, subject) status marks, monthly
notes and the counts derived from them.
'''
import datetime
from collections import defaultdict
from typing import Annotated, Iterable, Optional

from fastapi import Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..common.exceptions import InvalidInputError, RecordNotFoundError
from ..common.logger import log
from ..database import models as db_models
from ..database.db_enums import ATTENDANCE_CYCLE, AttendanceStatusEnum
from ..database.engine import get_db_session
from ..database.utils import month_bounds, subject_to_db, upsert
from ..models import attendance as attendance_models
from .holiday_service import HolidayService
from .scheduler_client import SchedulerClient, get_scheduler_client


def coerce_status(status: AttendanceStatusEnum | str) -> AttendanceStatusEnum:
    """Rejects anything outside the four known statuses."""
    try:
        return AttendanceStatusEnum(status)
    except ValueError:
        log.warning(f"Rejected unknown attendance status {status!r}")
        raise InvalidInputError(
            f"Invalid status {status!r}. Must be one of: {', '.join(AttendanceStatusEnum.get_all_names())}"
        )


def coerce_statuses(statuses: Iterable[AttendanceStatusEnum | str]) -> list[AttendanceStatusEnum]:
    return [coerce_status(status) for status in statuses]


class AttendanceService:
    """
    Service for reading and mutating attendance marks.
    Subject None and any named subject are always separate keys.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        holiday_service: Annotated[HolidayService, Depends(HolidayService)],
        scheduler: Annotated[SchedulerClient, Depends(get_scheduler_client)],
    ):
        self.db = db
        self.holiday_service = holiday_service
        self.scheduler = scheduler

    # --- Internal Fetchers ---

    async def _get_record(
        self, student_id: int, subject: Optional[str], day: datetime.date
    ) -> db_models.Attendance | None:
        stmt = select(db_models.Attendance).filter(
            db_models.Attendance.student_id == student_id,
            db_models.Attendance.date == day,
            db_models.Attendance.subject == subject_to_db(subject)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def _ensure_not_holiday(self, day: datetime.date):
        holiday = await self.holiday_service.get_holiday(day)
        if holiday is not None:
            log.warning(f"Refused to mark attendance on holiday {day} ({holiday.name!r})")
            raise InvalidInputError(f"{day.isoformat()} is a holiday ({holiday.name or 'unnamed'}); attendance cannot be marked.")

    # --- Mutations ---

    async def set_status(
        self,
        student_id: int,
        subject: Optional[str],
        day: datetime.date,
        status: AttendanceStatusEnum | str,
        notes: Optional[str] = None,
    ) -> attendance_models.AttendanceRead:
        """
        Creates or updates the mark for (student, date, subject).
        Repeating the call with the same arguments leaves a single row.
        """
        status = coerce_status(status)
        await self._ensure_not_holiday(day)
        log.info(f"Setting attendance student={student_id} subject={subject!r} date={day} -> {status.value}")

        await upsert(
            self.db,
            db_models.Attendance,
            {
                "student_id": student_id,
                "date": day,
                "subject": subject_to_db(subject),
                "status": status.value,
                "notes": notes,
            },
            conflict_columns=["student_id", "date", "subject"],
            update_columns=["status", "notes"],
        )
        record = await self._get_record(student_id, subject, day)
        return attendance_models.AttendanceRead.model_validate(record)

    async def clear(
        self, student_id: int, subject: Optional[str], day: datetime.date
    ) -> attendance_models.AttendanceRead:
        record = await self._get_record(student_id, subject, day)
        if record is None:
            log.warning(f"No attendance to clear for student={student_id} subject={subject!r} date={day}")
            raise RecordNotFoundError("Attendance record not found")

        removed = attendance_models.AttendanceRead.model_validate(record)
        await self.db.delete(record)
        await self.db.flush()
        log.info(f"Cleared attendance student={student_id} subject={subject!r} date={day}")
        return removed

    async def cycle(
        self, student_id: int, subject: Optional[str], day: datetime.date
    ) -> attendance_models.AttendanceRead:
        """
        Advances present -> absent -> ta -> noshow -> (cleared).
        With no record the mark starts at present. Every step resets the
        notes. A cleared result has status None and no id.
        """
        record = await self._get_record(student_id, subject, day)
        if record is None:
            return await self.set_status(student_id, subject, day, AttendanceStatusEnum.PRESENT)

        next_status = ATTENDANCE_CYCLE[AttendanceStatusEnum(record.status)]
        if next_status is None:
            await self.clear(student_id, subject, day)
            return attendance_models.AttendanceRead(student_id=student_id, date=day, subject=subject, status=None)

        return await self.set_status(student_id, subject, day, next_status)

    # --- Reads ---

    async def get_record(
        self, student_id: int, subject: Optional[str], day: datetime.date
    ) -> attendance_models.AttendanceRead | None:
        record = await self._get_record(student_id, subject, day)
        return attendance_models.AttendanceRead.model_validate(record) if record else None

    async def count_by_status(
        self,
        student_id: int,
        subject: Optional[str],
        start: datetime.date,
        end: datetime.date,
        statuses: Iterable[AttendanceStatusEnum | str],
    ) -> int:
        status_values = [status.value for status in coerce_statuses(statuses)]
        if not status_values:
            return 0
        stmt = select(func.count(db_models.Attendance.id)).filter(
            db_models.Attendance.student_id == student_id,
            db_models.Attendance.subject == subject_to_db(subject),
            db_models.Attendance.date >= start,
            db_models.Attendance.date <= end,
            db_models.Attendance.status.in_(status_values)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def present_counts_by_student(self, start: datetime.date, end: datetime.date) -> dict[int, int]:
        """
        Number of 'present' marks per student in [start, end], summed over
        every subject of that student.
        """
        stmt = select(
            db_models.Attendance.student_id,
            func.count(db_models.Attendance.id)
        ).filter(
            db_models.Attendance.date >= start,
            db_models.Attendance.date <= end,
            db_models.Attendance.status == AttendanceStatusEnum.PRESENT.value
        ).group_by(db_models.Attendance.student_id)
        result = await self.db.execute(stmt)
        return {student_id: count for student_id, count in result.all()}

    async def list_in_range(
        self,
        start: datetime.date,
        end: datetime.date,
        statuses: Optional[Iterable[AttendanceStatusEnum | str]] = None,
    ) -> list[attendance_models.AttendanceRead]:
        stmt = select(db_models.Attendance).filter(
            db_models.Attendance.date >= start,
            db_models.Attendance.date <= end
        )
        if statuses is not None:
            stmt = stmt.filter(db_models.Attendance.status.in_([s.value for s in coerce_statuses(statuses)]))
        stmt = stmt.order_by(
            db_models.Attendance.date,
            db_models.Attendance.student_id,
            db_models.Attendance.subject,
            db_models.Attendance.id
        )
        result = await self.db.execute(stmt)
        return [attendance_models.AttendanceRead.model_validate(row) for row in result.scalars().all()]

    async def list_for_month(self, year: int, month: int) -> list[attendance_models.AttendanceRead]:
        start, end = month_bounds(year, month)
        return await self.list_in_range(start, end)

    async def _status_counts(self, start: datetime.date, end: datetime.date, student_id: Optional[int] = None):
        stmt = select(
            db_models.Attendance.student_id,
            db_models.Attendance.status,
            func.count(db_models.Attendance.id)
        ).filter(
            db_models.Attendance.date >= start,
            db_models.Attendance.date <= end
        ).group_by(db_models.Attendance.student_id, db_models.Attendance.status)
        if student_id is not None:
            stmt = stmt.filter(db_models.Attendance.student_id == student_id)

        counts: dict[int, dict[str, int]] = defaultdict(dict)
        for row_student_id, status, count in (await self.db.execute(stmt)).all():
            counts[row_student_id][status] = count
        return counts

    @staticmethod
    def _summary_from_counts(student_id: int, counts: dict[str, int], **names) -> attendance_models.StudentMonthlySummary:
        return attendance_models.StudentMonthlySummary(
            student_id=student_id,
            present_count=counts.get(AttendanceStatusEnum.PRESENT.value, 0),
            absent_count=counts.get(AttendanceStatusEnum.ABSENT.value, 0),
            total_records=sum(counts.values()),
            **names
        )

    async def monthly_summary(self, year: int, month: int) -> list[attendance_models.StudentMonthlySummary]:
        """Present/absent/total counts per student who has marks in the month."""
        start, end = month_bounds(year, month)
        counts = await self._status_counts(start, end)
        if not counts:
            return []

        students = {student.id: student for student in await self.scheduler.list_active_students()}
        summaries = []
        for student_id, student_counts in counts.items():
            student = students.get(student_id)
            summaries.append(self._summary_from_counts(
                student_id,
                student_counts,
                name=student.display_name if student else None,
                english_name=student.english_name if student else None,
            ))
        summaries.sort(key=lambda summary: ((summary.name or '').casefold(), summary.student_id))
        return summaries

    async def student_summary(self, student_id: int, year: int, month: int) -> attendance_models.StudentMonthlySummary:
        start, end = month_bounds(year, month)
        counts = await self._status_counts(start, end, student_id=student_id)
        return self._summary_from_counts(student_id, counts.get(student_id, {}))

    async def teacher_assignments_for_month(self, year: int, month: int) -> list[attendance_models.TeacherAssignmentRead]:
        """
        Which teacher(s) each student had on each date of the month,
        according to the scheduler.
        """
        start, end = month_bounds(year, month)
        assignments = await self.scheduler.list_assignments_in_range(start, end)

        teacher_map: dict[tuple[int, datetime.date], set[str]] = {}
        for assignment in assignments:
            if assignment.date is None:
                continue
            for student in assignment.students:
                names = teacher_map.setdefault((student.id, assignment.date), set())
                names.update(teacher.name for teacher in assignment.teachers)

        return [
            attendance_models.TeacherAssignmentRead(
                student_id=student_id,
                date=day,
                teachers=', '.join(sorted(names))
            )
            for (student_id, day), names in teacher_map.items()
        ]

    # --- Notes ---

    async def list_notes_for_month(self, year: int, month: int) -> list[attendance_models.NoteRead]:
        stmt = select(db_models.StudentNotes).filter(
            db_models.StudentNotes.year == year,
            db_models.StudentNotes.month == month
        ).order_by(db_models.StudentNotes.student_id, db_models.StudentNotes.subject)
        result = await self.db.execute(stmt)
        return [attendance_models.NoteRead.model_validate(row) for row in result.scalars().all()]

    async def set_note(
        self, student_id: int, year: int, month: int, notes: Optional[str], subject: Optional[str] = None
    ) -> attendance_models.NoteRead:
        log.info(f"Setting note student={student_id} subject={subject!r} period={year}-{month:02d}")
        await upsert(
            self.db,
            db_models.StudentNotes,
            {
                "student_id": student_id,
                "year": year,
                "month": month,
                "subject": subject_to_db(subject),
                "notes": notes or '',
            },
            conflict_columns=["student_id", "year", "month", "subject"],
            update_columns=["notes"],
        )
        stmt = select(db_models.StudentNotes).filter(
            db_models.StudentNotes.student_id == student_id,
            db_models.StudentNotes.year == year,
            db_models.StudentNotes.month == month,
            db_models.StudentNotes.subject == subject_to_db(subject)
        ).execution_options(populate_existing=True)
        note = (await self.db.execute(stmt)).scalars().first()
        return attendance_models.NoteRead.model_validate(note)
