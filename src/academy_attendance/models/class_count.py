'''
Models for class counts over an arbitrary date range.
'''
import datetime
from typing import Optional

from pydantic import BaseModel

from ..database.db_enums import AttendanceStatusEnum

UNKNOWN_TEACHER_NAME = "Unknown Teacher"


class StudentClassCount(BaseModel):
    student_id: int
    student_name: str
    subject: Optional[str] = None
    class_count: int = 0


class TeacherClassCount(BaseModel):
    teacher_id: Optional[int] = None
    teacher_name: str
    total_classes: int = 0
    students: list[StudentClassCount] = []


class ClassCountRange(BaseModel):
    start_date: datetime.date
    end_date: datetime.date
    statuses: list[AttendanceStatusEnum]
    teacher_name: Optional[str] = None
    total_classes: int = 0
    teachers: list[TeacherClassCount] = []
