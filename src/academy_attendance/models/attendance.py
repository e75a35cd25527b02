'''
Models for attendance marks, monthly notes and holidays.
'''
import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import AttendanceStatusEnum
from .common import AdminInput, CamelInput, OptionalSubject


# --- 1. API Input Models ---

class AttendanceSetInput(CamelInput):
    """
    Direct setter. Only present/absent/ta can be written here;
    noshow is reachable through the toggle cycle only.
    """
    student_id: int
    date: datetime.date
    status: AttendanceStatusEnum
    subject: OptionalSubject = None
    notes: Optional[str] = None


class AttendanceToggleInput(CamelInput):
    student_id: int
    date: datetime.date
    subject: OptionalSubject = None


class NoteSetInput(CamelInput):
    student_id: int
    year: int
    month: int = Field(ge=1, le=12)
    notes: Optional[str] = None
    subject: OptionalSubject = None


class HolidayCreateInput(AdminInput):
    date: datetime.date
    name: Optional[str] = None


class HolidayDeleteInput(AdminInput):
    pass


# --- 2. API Output Models ---

class AttendanceRead(BaseModel):
    id: Optional[int] = None
    student_id: int
    date: datetime.date
    subject: OptionalSubject = None
    status: Optional[AttendanceStatusEnum] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AttendanceDeleted(BaseModel):
    message: str
    record: AttendanceRead


class StudentMonthlySummary(BaseModel):
    student_id: int
    name: Optional[str] = None
    english_name: Optional[str] = None
    present_count: int = 0
    absent_count: int = 0
    total_records: int = 0


class TeacherAssignmentRead(BaseModel):
    student_id: int
    date: datetime.date
    teachers: str


class NoteRead(BaseModel):
    student_id: int
    year: int
    month: int
    subject: OptionalSubject = None
    notes: str = ''

    model_config = ConfigDict(from_attributes=True)


class HolidayRead(BaseModel):
    id: int
    date: datetime.date
    name: str = ''
    created_at: Optional[datetime.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class HolidayDeleted(BaseModel):
    message: str
    holiday: HolidayRead
