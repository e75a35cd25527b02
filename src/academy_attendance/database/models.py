from typing import Optional

from sqlalchemy import BigInteger, Boolean, Date, DateTime, Enum, Index, Integer, Numeric, PrimaryKeyConstraint, SmallInteger, Text, UniqueConstraint, func, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
import datetime
import decimal

from .db_enums import AttendanceStatusEnum, CurrencyEnum

class Base(DeclarativeBase):
    pass


# "No subject" is stored as '' so it can take part in unique keys.
attendance_status_enum = Enum(*AttendanceStatusEnum.get_all_names(), name='attendance_status_enum')
currency_enum = Enum(*CurrencyEnum.get_all_names(), name='currency_enum')


class Attendance(Base):
    __tablename__ = 'attendance'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='attendance_pkey'),
        UniqueConstraint('student_id', 'date', 'subject', name='attendance_student_date_subject_key'),
        Index('idx_attendance_date', 'date')
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    student_id: Mapped[int] = mapped_column(Integer)
    date: Mapped[datetime.date] = mapped_column(Date)
    subject: Mapped[str] = mapped_column(Text, server_default=text("''"))
    status: Mapped[str] = mapped_column(attendance_status_enum)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())


class StudentNotes(Base):
    __tablename__ = 'student_notes'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='student_notes_pkey'),
        UniqueConstraint('student_id', 'year', 'month', 'subject', name='student_notes_student_period_subject_key')
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    student_id: Mapped[int] = mapped_column(Integer)
    year: Mapped[int] = mapped_column(SmallInteger)
    month: Mapped[int] = mapped_column(SmallInteger)
    subject: Mapped[str] = mapped_column(Text, server_default=text("''"))
    notes: Mapped[str] = mapped_column(Text, server_default=text("''"))
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())


class Holidays(Base):
    __tablename__ = 'holidays'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='holidays_pkey'),
        UniqueConstraint('date', name='holidays_date_key')
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    date: Mapped[datetime.date] = mapped_column(Date)
    name: Mapped[str] = mapped_column(Text, server_default=text("''"))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())


class StudentSubjectTuition(Base):
    __tablename__ = 'student_subject_tuition'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='student_subject_tuition_pkey'),
        UniqueConstraint('student_id', 'subject', name='student_subject_tuition_student_subject_key')
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    student_id: Mapped[int] = mapped_column(Integer)
    subject: Mapped[str] = mapped_column(Text)
    price_per_class: Mapped[decimal.Decimal] = mapped_column(Numeric(12, 2), server_default=text('0'))
    currency: Mapped[str] = mapped_column(currency_enum, server_default=text("'PHP'"))
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())


class SubjectTuitionPayments(Base):
    __tablename__ = 'subject_tuition_payments'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='subject_tuition_payments_pkey'),
        UniqueConstraint('student_id', 'subject', 'year', 'month', name='subject_tuition_payments_key')
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    student_id: Mapped[int] = mapped_column(Integer)
    subject: Mapped[str] = mapped_column(Text)
    year: Mapped[int] = mapped_column(SmallInteger)
    month: Mapped[int] = mapped_column(SmallInteger)
    paid: Mapped[bool] = mapped_column(Boolean, server_default=text('false'))
    payment_date: Mapped[Optional[datetime.date]] = mapped_column(Date)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())


class TeacherStudentCommission(Base):
    __tablename__ = 'teacher_student_commission'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='teacher_student_commission_pkey'),
        UniqueConstraint('teacher_id', 'student_id', name='teacher_student_commission_key')
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    teacher_id: Mapped[int] = mapped_column(Integer)
    student_id: Mapped[int] = mapped_column(Integer)
    commission_per_class: Mapped[decimal.Decimal] = mapped_column(Numeric(12, 2), server_default=text('0'))
    currency: Mapped[str] = mapped_column(currency_enum, server_default=text("'PHP'"))
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())


class TeacherStudentPayments(Base):
    __tablename__ = 'teacher_student_payments'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='teacher_student_payments_pkey'),
        UniqueConstraint('teacher_id', 'student_id', 'year', 'month', name='teacher_student_payments_key')
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    teacher_id: Mapped[int] = mapped_column(Integer)
    student_id: Mapped[int] = mapped_column(Integer)
    year: Mapped[int] = mapped_column(SmallInteger)
    month: Mapped[int] = mapped_column(SmallInteger)
    paid: Mapped[bool] = mapped_column(Boolean, server_default=text('false'))
    payment_date: Mapped[Optional[datetime.date]] = mapped_column(Date)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())


class HiddenAttendanceRows(Base):
    __tablename__ = 'hidden_attendance_rows'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='hidden_attendance_rows_pkey'),
        UniqueConstraint('student_id', 'subject', name='hidden_attendance_rows_student_subject_key')
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    student_id: Mapped[int] = mapped_column(Integer)
    subject: Mapped[str] = mapped_column(Text, server_default=text("''"))
    # Legacy rows have no from-period and are hidden unconditionally
    hidden_from_year: Mapped[Optional[int]] = mapped_column(SmallInteger)
    hidden_from_month: Mapped[Optional[int]] = mapped_column(SmallInteger)
    hidden_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), server_default=func.now())
