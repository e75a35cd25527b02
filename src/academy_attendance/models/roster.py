'''
Models for the resolved roster: one row per (student, subject).
'''
import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from ..core.schedules import format_clock
from ..database.db_enums import RowSourceEnum
from .common import CamelInput, OptionalSubject


class ScheduleEntry(BaseModel):
    """A weekly time range on a set of weekdays, e.g. 07:00-08:00 on "MWF"."""
    start_time: datetime.time
    end_time: datetime.time
    days: str

    @computed_field
    @property
    def time(self) -> str:
        return f"{format_clock(self.start_time)} - {format_clock(self.end_time)}"


class StudentSubjectRow(BaseModel):
    student_id: int
    name: str
    korean_name: Optional[str] = None
    english_name: Optional[str] = None
    color_keyword: Optional[str] = None
    subject: OptionalSubject = None
    teacher_name: Optional[str] = None
    schedules: list[ScheduleEntry] = []
    source: RowSourceEnum = RowSourceEnum.SCHEDULER

    @computed_field
    @property
    def row_key(self) -> str:
        return f"{self.student_id}-{self.subject or 'default'}"

    @computed_field
    @property
    def schedule_time(self) -> Optional[str]:
        return self.schedules[0].time if self.schedules else None

    @computed_field
    @property
    def schedule_days(self) -> Optional[str]:
        return self.schedules[0].days if self.schedules else None

    @property
    def key(self) -> tuple[int, Optional[str]]:
        return (self.student_id, self.subject)


# --- Hidden rows ---

class HideRowInput(CamelInput):
    student_id: int
    subject: OptionalSubject = None
    year: Optional[int] = None
    month: Optional[int] = None

    @field_validator('month')
    @classmethod
    def month_in_range(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and not 1 <= value <= 12:
            raise ValueError("month must be between 1 and 12")
        return value


class UnhideRowInput(CamelInput):
    student_id: int
    subject: OptionalSubject = None


class HiddenRowRead(BaseModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    korean_name: Optional[str] = None
    english_name: Optional[str] = None
    subject: OptionalSubject = None
    hidden_from_year: Optional[int] = None
    hidden_from_month: Optional[int] = None
    hidden_at: Optional[datetime.datetime] = None

    model_config = ConfigDict(from_attributes=True)
