'''
Class counts over an arbitrary date range, grouped by teacher then student.
'''
import datetime
from typing import Annotated, Iterable, Optional

from fastapi import Depends

from ..common.exceptions import InvalidInputError
from ..common.logger import log
from ..core.schedules import clean_display_name, sunday_based_weekday
from ..database.db_enums import AttendanceStatusEnum
from ..models import class_count as class_count_models
from ..models.attendance import AttendanceRead
from ..models.scheduler import SchedulerAssignment, SchedulerPerson
from .attendance_service import AttendanceService, coerce_statuses
from .scheduler_client import SchedulerClient, get_scheduler_client


def _occurs_on(assignment: SchedulerAssignment, day: datetime.date) -> bool:
    if assignment.date is not None:
        return assignment.date == day
    return sunday_based_weekday(day) in assignment.weekdays


def resolve_teacher(
    record: AttendanceRead, assignments: list[SchedulerAssignment]
) -> Optional[SchedulerPerson]:
    """
    The teacher of the assignment the student attended on that date.
    An assignment with the same subject wins over the first one found.
    """
    candidates = [
        assignment for assignment in assignments
        if _occurs_on(assignment, record.date)
        and any(student.id == record.student_id for student in assignment.students)
    ]
    if not candidates:
        return None
    chosen = next((a for a in candidates if a.subject == record.subject), candidates[0])
    return chosen.primary_teacher


class ClassCountService:
    def __init__(
        self,
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)],
        scheduler: Annotated[SchedulerClient, Depends(get_scheduler_client)],
    ):
        self.attendance_service = attendance_service
        self.scheduler = scheduler

    async def count_range(
        self,
        start_date: datetime.date,
        end_date: datetime.date,
        statuses: Iterable[AttendanceStatusEnum | str],
        teacher_name: Optional[str] = None,
    ) -> class_count_models.ClassCountRange:
        """
        Counts every attendance record in [start_date, end_date] whose
        status is in `statuses` exactly once, under its resolved teacher
        or the "Unknown Teacher" bucket. Buckets and students keep the
        order in which they first appear.
        """
        statuses = list(dict.fromkeys(coerce_statuses(statuses)))
        if not statuses:
            raise InvalidInputError("At least one status is required")
        if start_date > end_date:
            raise InvalidInputError("startDate must be on or before endDate")

        log.info(f"Counting classes {start_date}..{end_date} statuses={[s.value for s in statuses]} teacher={teacher_name!r}")
        records = await self.attendance_service.list_in_range(start_date, end_date, statuses)
        assignments = await self.scheduler.list_assignments_in_range(start_date, end_date)

        student_names = {student.id: clean_display_name(student.name) for assignment in assignments for student in assignment.students}
        if any(record.student_id not in student_names for record in records):
            for student in await self.scheduler.list_active_students():
                student_names.setdefault(student.id, student.display_name)

        buckets: dict[Optional[int], class_count_models.TeacherClassCount] = {}
        students: dict[tuple[Optional[int], int, Optional[str]], class_count_models.StudentClassCount] = {}
        for record in records:
            teacher = resolve_teacher(record, assignments)
            teacher_id = teacher.id if teacher else None
            bucket = buckets.get(teacher_id)
            if bucket is None:
                bucket = class_count_models.TeacherClassCount(
                    teacher_id=teacher_id,
                    teacher_name=teacher.name if teacher else class_count_models.UNKNOWN_TEACHER_NAME,
                )
                buckets[teacher_id] = bucket

            student_key = (teacher_id, record.student_id, record.subject)
            entry = students.get(student_key)
            if entry is None:
                entry = class_count_models.StudentClassCount(
                    student_id=record.student_id,
                    student_name=student_names.get(record.student_id, f"Student {record.student_id}"),
                    subject=record.subject,
                )
                students[student_key] = entry
                bucket.students.append(entry)
            entry.class_count += 1
            bucket.total_classes += 1

        teachers = list(buckets.values())
        if teacher_name:
            teachers = [bucket for bucket in teachers if bucket.teacher_name == teacher_name]

        return class_count_models.ClassCountRange(
            start_date=start_date,
            end_date=end_date,
            statuses=statuses,
            teacher_name=teacher_name,
            total_classes=sum(bucket.total_classes for bucket in teachers),
            teachers=teachers,
        )
