'''
Models for subject tuition billing, teacher commissions and their summaries.
'''
import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..database.db_enums import CurrencyEnum
from .common import AdminInput, RequiredSubject
from .roster import StudentSubjectRow


# --- 1. API Input Models ---

class AdminVerifyInput(AdminInput):
    pass


class SubjectPriceInput(AdminInput):
    """
    Sets the price of a student's subject. Leaving pricePerClass out keeps
    the stored number, which is how a currency switch is expressed.
    """
    student_id: int
    subject: RequiredSubject
    price_per_class: Optional[Decimal] = None
    currency: Optional[str] = None


class SubjectPaymentToggleInput(AdminInput):
    student_id: int
    subject: RequiredSubject
    year: int
    month: int = Field(ge=1, le=12)


class SubjectAddInput(AdminInput):
    student_id: int
    subject: RequiredSubject


class SubjectDeleteInput(AdminInput):
    pass


class CommissionSetInput(AdminInput):
    teacher_id: int
    student_id: int
    commission_per_class: Decimal
    currency: Optional[str] = None


class TeacherPaymentToggleInput(AdminInput):
    teacher_id: int
    student_id: int
    year: int
    month: int = Field(ge=1, le=12)


# --- 2. Stored record models ---

class PricingRead(BaseModel):
    student_id: int
    subject: str
    price_per_class: Decimal
    currency: CurrencyEnum

    model_config = ConfigDict(from_attributes=True)


class SubjectPaymentRead(BaseModel):
    student_id: int
    subject: str
    year: int
    month: int
    paid: bool
    payment_date: Optional[datetime.date] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubjectAddResult(BaseModel):
    created: bool
    message: str
    record: PricingRead


class SubjectDeleted(BaseModel):
    message: str
    record: PricingRead
    payments_deleted: int


class CommissionRead(BaseModel):
    teacher_id: int
    student_id: int
    commission_per_class: Decimal
    currency: CurrencyEnum

    model_config = ConfigDict(from_attributes=True)


class TeacherPaymentRead(BaseModel):
    teacher_id: int
    student_id: int
    year: int
    month: int
    paid: bool
    payment_date: Optional[datetime.date] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TeacherRead(BaseModel):
    id: int
    name: str


# --- 3. Computed rows ---

class BillingRow(StudentSubjectRow):
    """
    A roster row priced for one billing period.
    present_count is per student: it is shared by every subject row of
    the same student.
    """
    price_per_class: Decimal = Decimal('0')
    currency: CurrencyEnum = CurrencyEnum.PHP
    present_count: int = 0
    total_tuition: Decimal = Decimal('0')
    paid: bool = False
    payment_date: Optional[datetime.date] = None
    payment_notes: Optional[str] = None


class CommissionRow(BaseModel):
    student_id: int
    student_name: str
    korean_name: Optional[str] = None
    english_name: Optional[str] = None
    teacher_id: int
    teacher_name: str
    commission_per_class: Decimal = Decimal('0')
    currency: CurrencyEnum = CurrencyEnum.PHP
    class_count: int = 0
    total_commission: Decimal = Decimal('0')
    paid: bool = False
    payment_date: Optional[datetime.date] = None
    payment_notes: Optional[str] = None

    @computed_field
    @property
    def id(self) -> str:
        return f"{self.teacher_id}-{self.student_id}"


# --- 4. Summaries ---

class CurrencySummary(BaseModel):
    total: Decimal = Decimal('0')
    paid: Decimal = Decimal('0')
    unpaid: Decimal = Decimal('0')
    paid_count: int = 0
    unpaid_count: int = 0


class BillingSummary(BaseModel):
    total_rows: int = 0
    total_classes: int = 0
    paid_count: int = 0
    unpaid_count: int = 0
    by_currency: dict[CurrencyEnum, CurrencySummary] = Field(default_factory=dict)


class TuitionOverview(BaseModel):
    year: int
    month: int
    rows: list[BillingRow]
    summary: BillingSummary


class CommissionOverview(BaseModel):
    year: int
    month: int
    rows: list[CommissionRow]
    summary: BillingSummary
