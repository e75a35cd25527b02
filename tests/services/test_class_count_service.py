'''
Tests for the ClassCountService.
'''
import datetime

import pytest

from src.academy_attendance.common.exceptions import InvalidInputError
from src.academy_attendance.database.db_enums import AttendanceStatusEnum
from src.academy_attendance.models.class_count import UNKNOWN_TEACHER_NAME
from src.academy_attendance.services.attendance_service import AttendanceService
from src.academy_attendance.services.class_count_service import ClassCountService

from tests.constants import (
    JUNE_2, JUNE_3, JUNE_4, JUNE_5,
    STUDENT_BORA_ID, STUDENT_JIHYE_ID, STUDENT_MIN_ID,
    TEACHER_ANNA_ID, TEACHER_BEN_ID,
)

JUNE_START = datetime.date(2025, 6, 1)
JUNE_END = datetime.date(2025, 6, 30)


async def seed_attendance(attendance_service: AttendanceService):
    await attendance_service.set_status(STUDENT_JIHYE_ID, "Math", JUNE_2, "present")
    await attendance_service.set_status(STUDENT_JIHYE_ID, "Science", JUNE_3, "present")
    await attendance_service.set_status(STUDENT_JIHYE_ID, "Math", JUNE_3, "absent")
    await attendance_service.set_status(STUDENT_MIN_ID, "English", JUNE_3, "present")
    await attendance_service.set_status(STUDENT_MIN_ID, "English", JUNE_5, "present")
    await attendance_service.set_status(STUDENT_BORA_ID, None, JUNE_4, "ta")


@pytest.mark.anyio
class TestCountRange:

    async def test_groups_by_teacher_then_student(
        self, class_count_service: ClassCountService, attendance_service: AttendanceService
    ):
        """Present marks in June grouped under the teacher of the matching assignment."""
        print("\n--- Testing class count grouping ---")

        # 1. ARRANGE
        await seed_attendance(attendance_service)

        # 2. ACT
        result = await class_count_service.count_range(JUNE_START, JUNE_END, ["present"])

        # 3. ASSERT
        assert [(t.teacher_id, t.teacher_name, t.total_classes) for t in result.teachers] == [
            (TEACHER_ANNA_ID, "Teacher Anna", 1),
            (TEACHER_BEN_ID, "Teacher Ben", 2),
            (None, UNKNOWN_TEACHER_NAME, 1),
        ]
        ben = result.teachers[1]
        assert [(s.student_id, s.subject, s.class_count) for s in ben.students] == [
            (STUDENT_JIHYE_ID, "Science", 1),
            (STUDENT_MIN_ID, "English", 1),
        ]
        assert ben.students[0].student_name == "Kim Ji Hye"
        assert result.total_classes == 4
        print("--- Passed ---")

    async def test_subject_matching_assignment_is_preferred(
        self, class_count_service: ClassCountService, attendance_service: AttendanceService
    ):
        await attendance_service.set_status(STUDENT_JIHYE_ID, "Science", JUNE_3, "present")

        result = await class_count_service.count_range(JUNE_START, JUNE_END, [AttendanceStatusEnum.PRESENT])

        # Math with Teacher Anna comes first on that date, Science with Teacher Ben matches
        assert [t.teacher_id for t in result.teachers] == [TEACHER_BEN_ID]

    async def test_every_record_counted_once(
        self, class_count_service: ClassCountService, attendance_service: AttendanceService
    ):
        await seed_attendance(attendance_service)
        statuses = ["present", "absent", "ta", "noshow"]

        result = await class_count_service.count_range(JUNE_START, JUNE_END, statuses)
        records = await attendance_service.list_in_range(JUNE_START, JUNE_END, statuses)

        assert result.total_classes == len(records) == 6
        assert sum(s.class_count for t in result.teachers for s in t.students) == 6
        anna = result.teachers[0]
        assert [(s.subject, s.class_count) for s in anna.students] == [("Math", 2)]
        unknown = next(t for t in result.teachers if t.teacher_id is None)
        assert {s.student_name for s in unknown.students} == {"Park Min", "Lee Bo Ra"}

    async def test_teacher_filter(
        self, class_count_service: ClassCountService, attendance_service: AttendanceService
    ):
        await seed_attendance(attendance_service)

        result = await class_count_service.count_range(JUNE_START, JUNE_END, ["present"], teacher_name="Teacher Ben")

        assert [t.teacher_name for t in result.teachers] == ["Teacher Ben"]
        assert result.total_classes == 2
        assert result.teacher_name == "Teacher Ben"

    async def test_empty_status_set_is_rejected(self, class_count_service: ClassCountService):
        with pytest.raises(InvalidInputError):
            await class_count_service.count_range(JUNE_START, JUNE_END, [])

    async def test_reversed_range_is_rejected(self, class_count_service: ClassCountService):
        with pytest.raises(InvalidInputError):
            await class_count_service.count_range(JUNE_END, JUNE_START, ["present"])

    async def test_unknown_status_is_rejected(self, class_count_service: ClassCountService):
        with pytest.raises(InvalidInputError):
            await class_count_service.count_range(JUNE_START, JUNE_END, ["late"])
