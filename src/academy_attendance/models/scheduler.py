'''
Pydantic models for the payloads served by the online scheduler.
Everything here is read-only master data owned by that service.
'''
import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.schedules import clean_display_name, extract_localized_name, sunday_based_weekday


class SchedulerStudent(BaseModel):
    id: int
    name: str
    english_name: Optional[str] = None
    korean_name: Optional[str] = None
    color_keyword: Optional[str] = None
    is_active: bool = True

    model_config = ConfigDict(extra='ignore')

    @property
    def display_name(self) -> str:
        """The name without its bracketed localized segment."""
        return clean_display_name(self.name)

    @property
    def localized_name(self) -> Optional[str]:
        return extract_localized_name(self.name) or self.korean_name


class SchedulerPerson(BaseModel):
    """Lean student/teacher reference embedded in an assignment."""
    id: int
    name: str

    model_config = ConfigDict(extra='ignore')


class SchedulerTeacher(SchedulerPerson):
    is_active: bool = True


class SchedulerTimeSlot(BaseModel):
    start_time: datetime.time
    end_time: datetime.time

    model_config = ConfigDict(extra='ignore')


class SchedulerAssignment(BaseModel):
    """
    One assignment of students and teachers to a subject in a time slot.
    It either carries an explicit set of recurring weekdays (Sunday=0)
    or a single dated occurrence.
    """
    id: int
    subject: Optional[str] = None
    date: Optional[datetime.date] = None
    weekdays: list[int] = Field(default_factory=list)
    is_active: bool = True
    time_slot: Optional[SchedulerTimeSlot] = None
    students: list[SchedulerPerson] = Field(default_factory=list)
    teachers: list[SchedulerPerson] = Field(default_factory=list)

    model_config = ConfigDict(extra='ignore')

    @field_validator('date', mode='before')
    @classmethod
    def strip_time_component(cls, value: Any) -> Any:
        # The scheduler serialises dates as full ISO timestamps
        if isinstance(value, str) and 'T' in value:
            return value.split('T')[0]
        return value

    @field_validator('subject', mode='before')
    @classmethod
    def blank_subject_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('weekdays')
    @classmethod
    def weekdays_in_range(cls, value: list[int]) -> list[int]:
        for day in value:
            if day < 0 or day > 6:
                raise ValueError(f"weekday {day} is outside 0 (Sunday) .. 6 (Saturday)")
        return value

    def occurrence_weekdays(self) -> set[int]:
        if self.weekdays:
            return set(self.weekdays)
        if self.date is not None:
            return {sunday_based_weekday(self.date)}
        return set()

    @property
    def primary_teacher(self) -> Optional[SchedulerPerson]:
        return self.teachers[0] if self.teachers else None
