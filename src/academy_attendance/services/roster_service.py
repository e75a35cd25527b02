'''
Roster resolution: joins scheduler students/assignments with locally
priced subjects into one row per (student, subject), then applies the
hidden-row window.
'''
import datetime
from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..common.exceptions import RecordNotFoundError, UpstreamUnavailableError
from ..common.logger import log
from ..core.schedules import merge_consecutive_schedules, weekday_letters
from ..database import models as db_models
from ..database.db_enums import RowSourceEnum
from ..database.engine import get_db_session
from ..database.utils import period_index, subject_from_db, subject_to_db, upsert
from ..models import roster as roster_models
from ..models.scheduler import SchedulerAssignment, SchedulerStudent
from .scheduler_client import SchedulerClient, get_scheduler_client


def is_hidden_for_period(
    hidden: db_models.HiddenAttendanceRows, year: Optional[int], month: Optional[int]
) -> bool:
    """
    A hidden row suppresses its key from its from-period onwards.
    Without an as-of period, or for legacy rows with no from-period,
    the key is always suppressed.
    """
    if not year or not month or not hidden.hidden_from_year or not hidden.hidden_from_month:
        return True
    return period_index(year, month) >= period_index(hidden.hidden_from_year, hidden.hidden_from_month)


class _SubjectGroup:
    """Accumulates the time slots of one (student, subject) pair."""

    def __init__(self, teacher_name: Optional[str]):
        self.teacher_name = teacher_name
        self.slots: dict[tuple[datetime.time, datetime.time, Optional[str]], set[int]] = {}

    def add(self, assignment: SchedulerAssignment):
        if assignment.time_slot is None:
            return
        teacher = assignment.primary_teacher
        slot_key = (assignment.time_slot.start_time, assignment.time_slot.end_time, teacher.name if teacher else None)
        self.slots.setdefault(slot_key, set()).update(assignment.occurrence_weekdays())

    def schedules(self) -> list[roster_models.ScheduleEntry]:
        entries = {}
        for (start, end, _teacher), weekdays in self.slots.items():
            if not weekdays:
                continue
            days = weekday_letters(weekdays)
            entries[(start, end, days)] = roster_models.ScheduleEntry(start_time=start, end_time=end, days=days)
        return merge_consecutive_schedules(list(entries.values()))


class RosterService:
    """
    Resolves the attendance roster. Every call re-fetches from the
    scheduler; an unreachable scheduler fails the whole call.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        scheduler: Annotated[SchedulerClient, Depends(get_scheduler_client)],
    ):
        self.db = db
        self.scheduler = scheduler

    # --- Internal helpers ---

    @staticmethod
    def _group_assignments(assignments: list[SchedulerAssignment]) -> dict[int, dict[Optional[str], _SubjectGroup]]:
        # (subject, start time) order decides which teacher a group reports
        ordered = sorted(
            assignments,
            key=lambda a: (a.subject or '', a.time_slot.start_time if a.time_slot else datetime.time.min)
        )
        groups: dict[int, dict[Optional[str], _SubjectGroup]] = {}
        for assignment in ordered:
            teacher = assignment.primary_teacher
            for student in assignment.students:
                student_groups = groups.setdefault(student.id, {})
                group = student_groups.get(assignment.subject)
                if group is None:
                    group = _SubjectGroup(teacher.name if teacher else None)
                    student_groups[assignment.subject] = group
                group.add(assignment)
        return groups

    async def _priced_subjects(self) -> list[tuple[int, str]]:
        stmt = select(
            db_models.StudentSubjectTuition.student_id,
            db_models.StudentSubjectTuition.subject
        ).distinct().order_by(
            db_models.StudentSubjectTuition.student_id,
            db_models.StudentSubjectTuition.subject
        )
        result = await self.db.execute(stmt)
        return [(student_id, subject) for student_id, subject in result.all() if subject]

    async def _hidden_rows(self) -> list[db_models.HiddenAttendanceRows]:
        stmt = select(db_models.HiddenAttendanceRows).order_by(
            db_models.HiddenAttendanceRows.hidden_at.desc(),
            db_models.HiddenAttendanceRows.id.desc()
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _row_for(student: SchedulerStudent, subject: Optional[str], **extra) -> roster_models.StudentSubjectRow:
        return roster_models.StudentSubjectRow(
            student_id=student.id,
            name=student.display_name,
            korean_name=student.localized_name,
            english_name=student.english_name,
            color_keyword=student.color_keyword,
            subject=subject,
            **extra
        )

    # --- Public API ---

    async def resolve_roster(
        self, year: Optional[int] = None, month: Optional[int] = None
    ) -> list[roster_models.StudentSubjectRow]:
        """
        One row per (student, subject) that is scheduled or priced, or a
        single subject-less row for an active student with neither.
        """
        log.info(f"Resolving roster (as of {year}-{month})")
        students = await self.scheduler.list_active_students()
        assignments = await self.scheduler.list_active_assignments()

        groups = self._group_assignments(assignments)
        for student_id, subject in await self._priced_subjects():
            groups.setdefault(student_id, {})
            if subject not in groups[student_id]:
                groups[student_id][subject] = None

        rows: list[roster_models.StudentSubjectRow] = []
        for student in students:
            student_groups = groups.get(student.id)
            if not student_groups:
                rows.append(self._row_for(student, None))
                continue
            for subject, group in student_groups.items():
                if group is None:
                    rows.append(self._row_for(student, subject, source=RowSourceEnum.PRICING))
                else:
                    rows.append(self._row_for(
                        student,
                        subject,
                        teacher_name=group.teacher_name,
                        schedules=group.schedules(),
                        source=RowSourceEnum.SCHEDULER,
                    ))

        hidden_keys = {
            (hidden.student_id, subject_from_db(hidden.subject))
            for hidden in await self._hidden_rows()
            if is_hidden_for_period(hidden, year, month)
        }
        if hidden_keys:
            rows = [row for row in rows if row.key not in hidden_keys]

        rows.sort(key=lambda row: (row.name.casefold(), row.name, row.subject or ''))
        log.info(f"Resolved {len(rows)} roster rows for {len(students)} active students")
        return rows

    async def list_hidden_rows(self) -> list[roster_models.HiddenRowRead]:
        hidden_rows = await self._hidden_rows()
        try:
            students = {student.id: student for student in await self.scheduler.list_active_students()}
        except UpstreamUnavailableError:
            log.warning("Listing hidden rows without student names: online scheduler unavailable.")
            students = {}

        result = []
        for hidden in hidden_rows:
            item = roster_models.HiddenRowRead.model_validate(hidden)
            student = students.get(hidden.student_id)
            if student is not None:
                item.student_name = student.display_name
                item.korean_name = student.localized_name
                item.english_name = student.english_name
            result.append(item)
        return result

    async def _get_hidden(self, student_id: int, subject: Optional[str]) -> db_models.HiddenAttendanceRows | None:
        stmt = select(db_models.HiddenAttendanceRows).filter(
            db_models.HiddenAttendanceRows.student_id == student_id,
            db_models.HiddenAttendanceRows.subject == subject_to_db(subject)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def hide_row(
        self,
        student_id: int,
        subject: Optional[str],
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> roster_models.HiddenRowRead:
        """
        Hides (student, subject) from the given period onwards. A missing
        year or month falls back to the current one, each on its own.
        """
        today = datetime.date.today()
        year = year if year is not None else today.year
        month = month if month is not None else today.month

        log.info(f"Hiding row student={student_id} subject={subject!r} from {year}-{month:02d}")
        await upsert(
            self.db,
            db_models.HiddenAttendanceRows,
            {
                "student_id": student_id,
                "subject": subject_to_db(subject),
                "hidden_from_year": year,
                "hidden_from_month": month,
            },
            conflict_columns=["student_id", "subject"],
            update_columns=["hidden_from_year", "hidden_from_month"],
            touch_column="hidden_at",
        )
        hidden = await self._get_hidden(student_id, subject)
        return roster_models.HiddenRowRead.model_validate(hidden)

    async def unhide_row(self, student_id: int, subject: Optional[str]) -> roster_models.HiddenRowRead:
        hidden = await self._get_hidden(student_id, subject)
        if hidden is None:
            log.warning(f"Tried to unhide a row that is not hidden: student={student_id} subject={subject!r}")
            raise RecordNotFoundError("Hidden row not found")

        removed = roster_models.HiddenRowRead.model_validate(hidden)
        await self.db.delete(hidden)
        await self.db.flush()
        log.info(f"Unhid row student={student_id} subject={subject!r}")
        return removed
