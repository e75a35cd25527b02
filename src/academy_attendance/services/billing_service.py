'''
Tuition billing per (student, subject) and teacher commissions per
(teacher, student) for one billing period.
'''
import datetime
from collections import Counter
from decimal import Decimal
from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..common.exceptions import InvalidInputError, RecordNotFoundError
from ..common.logger import log
from ..core.billing import summarize_commissions, summarize_tuition
from ..database import models as db_models
from ..database.db_enums import DEFAULT_CURRENCY, CurrencyEnum
from ..database.engine import get_db_session
from ..database.utils import month_bounds, upsert
from ..models import billing as billing_models
from .attendance_service import AttendanceService
from .roster_service import RosterService
from .scheduler_client import SchedulerClient, get_scheduler_client


def resolve_currency(currency: Optional[str]) -> CurrencyEnum:
    """Omitted means PHP; anything else must be a known currency code."""
    if currency is None or currency == '':
        return DEFAULT_CURRENCY
    try:
        return CurrencyEnum(currency)
    except ValueError:
        log.warning(f"Rejected unknown currency {currency!r}")
        raise InvalidInputError(f"Invalid currency. Must be one of: {', '.join(CurrencyEnum.get_all_names())}")


def require_non_negative(value: Decimal, field: str) -> Decimal:
    if value < 0:
        raise InvalidInputError(f"{field} must be greater than or equal to 0")
    return value


def require_subject(subject: Optional[str]) -> str:
    subject = subject.strip() if subject else ''
    if not subject:
        raise InvalidInputError("Subject is required")
    return subject


class BillingService:
    """
    Computes billing and commission rows and owns the pricing, commission
    and payment records behind them.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        roster_service: Annotated[RosterService, Depends(RosterService)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)],
        scheduler: Annotated[SchedulerClient, Depends(get_scheduler_client)],
    ):
        self.db = db
        self.roster_service = roster_service
        self.attendance_service = attendance_service
        self.scheduler = scheduler

    # --- Internal Fetchers ---

    async def _get_pricing(self, student_id: int, subject: str) -> db_models.StudentSubjectTuition | None:
        stmt = select(db_models.StudentSubjectTuition).filter(
            db_models.StudentSubjectTuition.student_id == student_id,
            db_models.StudentSubjectTuition.subject == subject
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def _get_subject_payment(
        self, student_id: int, subject: str, year: int, month: int
    ) -> db_models.SubjectTuitionPayments | None:
        stmt = select(db_models.SubjectTuitionPayments).filter(
            db_models.SubjectTuitionPayments.student_id == student_id,
            db_models.SubjectTuitionPayments.subject == subject,
            db_models.SubjectTuitionPayments.year == year,
            db_models.SubjectTuitionPayments.month == month
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def _get_commission(self, teacher_id: int, student_id: int) -> db_models.TeacherStudentCommission | None:
        stmt = select(db_models.TeacherStudentCommission).filter(
            db_models.TeacherStudentCommission.teacher_id == teacher_id,
            db_models.TeacherStudentCommission.student_id == student_id
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def _get_teacher_payment(
        self, teacher_id: int, student_id: int, year: int, month: int
    ) -> db_models.TeacherStudentPayments | None:
        stmt = select(db_models.TeacherStudentPayments).filter(
            db_models.TeacherStudentPayments.teacher_id == teacher_id,
            db_models.TeacherStudentPayments.student_id == student_id,
            db_models.TeacherStudentPayments.year == year,
            db_models.TeacherStudentPayments.month == month
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    # --- Computed rows ---

    async def compute_tuition(self, year: int, month: int) -> list[billing_models.BillingRow]:
        """
        Prices every roster row visible in (year, month).
        total_tuition = price_per_class * present_count, where present_count
        is the student's present marks in the month over all subjects.
        """
        log.info(f"Computing tuition for {year}-{month:02d}")
        rows = await self.roster_service.resolve_roster(year, month)
        start, end = month_bounds(year, month)
        present_counts = await self.attendance_service.present_counts_by_student(start, end)

        pricing = {
            (record.student_id, record.subject): record
            for record in (await self.db.execute(select(db_models.StudentSubjectTuition))).scalars().all()
        }
        payments_stmt = select(db_models.SubjectTuitionPayments).filter(
            db_models.SubjectTuitionPayments.year == year,
            db_models.SubjectTuitionPayments.month == month
        )
        payments = {
            (record.student_id, record.subject): record
            for record in (await self.db.execute(payments_stmt)).scalars().all()
        }

        billing_rows = []
        for row in rows:
            price = pricing.get((row.student_id, row.subject)) if row.subject else None
            payment = payments.get((row.student_id, row.subject)) if row.subject else None
            price_per_class = price.price_per_class if price else Decimal('0')
            present_count = present_counts.get(row.student_id, 0)
            billing_rows.append(billing_models.BillingRow(
                **row.model_dump(exclude={'row_key', 'schedule_time', 'schedule_days'}),
                price_per_class=price_per_class,
                currency=price.currency if price else DEFAULT_CURRENCY,
                present_count=present_count,
                total_tuition=price_per_class * present_count,
                paid=payment.paid if payment else False,
                payment_date=payment.payment_date if payment else None,
                payment_notes=payment.notes if payment else None,
            ))
        return billing_rows

    async def tuition_overview(self, year: int, month: int) -> billing_models.TuitionOverview:
        rows = await self.compute_tuition(year, month)
        return billing_models.TuitionOverview(year=year, month=month, rows=rows, summary=summarize_tuition(rows))

    async def compute_commissions(self, year: int, month: int) -> list[billing_models.CommissionRow]:
        """
        One row per active student with an assigned teacher: the primary
        teacher is the one on most of the student's active assignments,
        ties going to the lowest teacher id.
        """
        log.info(f"Computing commissions for {year}-{month:02d}")
        students = await self.scheduler.list_active_students()
        assignments = await self.scheduler.list_active_assignments()

        occurrences: dict[int, Counter] = {}
        teacher_names: dict[int, str] = {}
        for assignment in assignments:
            for teacher in assignment.teachers:
                teacher_names.setdefault(teacher.id, teacher.name)
                for student in assignment.students:
                    occurrences.setdefault(student.id, Counter())[teacher.id] += 1

        start, end = month_bounds(year, month)
        present_counts = await self.attendance_service.present_counts_by_student(start, end)
        commissions = {
            (record.teacher_id, record.student_id): record
            for record in (await self.db.execute(select(db_models.TeacherStudentCommission))).scalars().all()
        }
        payments_stmt = select(db_models.TeacherStudentPayments).filter(
            db_models.TeacherStudentPayments.year == year,
            db_models.TeacherStudentPayments.month == month
        )
        payments = {
            (record.teacher_id, record.student_id): record
            for record in (await self.db.execute(payments_stmt)).scalars().all()
        }

        rows = []
        for student in students:
            counter = occurrences.get(student.id)
            if not counter:
                continue
            teacher_id = min(counter, key=lambda tid: (-counter[tid], tid))
            commission = commissions.get((teacher_id, student.id))
            payment = payments.get((teacher_id, student.id))
            rate = commission.commission_per_class if commission else Decimal('0')
            class_count = present_counts.get(student.id, 0)
            rows.append(billing_models.CommissionRow(
                student_id=student.id,
                student_name=student.display_name,
                korean_name=student.localized_name,
                english_name=student.english_name,
                teacher_id=teacher_id,
                teacher_name=teacher_names[teacher_id],
                commission_per_class=rate,
                currency=commission.currency if commission else DEFAULT_CURRENCY,
                class_count=class_count,
                total_commission=rate * class_count,
                paid=payment.paid if payment else False,
                payment_date=payment.payment_date if payment else None,
                payment_notes=payment.notes if payment else None,
            ))

        rows.sort(key=lambda row: (row.teacher_name, row.student_name))
        return rows

    async def commission_overview(self, year: int, month: int) -> billing_models.CommissionOverview:
        rows = await self.compute_commissions(year, month)
        return billing_models.CommissionOverview(year=year, month=month, rows=rows, summary=summarize_commissions(rows))

    # --- Pricing mutations ---

    async def set_price(
        self,
        student_id: int,
        subject: str,
        price_per_class: Optional[Decimal] = None,
        currency: Optional[str] = None,
    ) -> billing_models.PricingRead:
        """
        Upserts the price of (student, subject). An omitted price keeps the
        stored one, so a currency switch re-saves the current number.
        """
        subject = require_subject(subject)
        resolved_currency = resolve_currency(currency)
        if price_per_class is None:
            existing = await self._get_pricing(student_id, subject)
            price_per_class = existing.price_per_class if existing else Decimal('0')
        require_non_negative(price_per_class, "pricePerClass")

        log.info(f"Setting price student={student_id} subject={subject!r} -> {price_per_class} {resolved_currency.value}")
        await upsert(
            self.db,
            db_models.StudentSubjectTuition,
            {
                "student_id": student_id,
                "subject": subject,
                "price_per_class": price_per_class,
                "currency": resolved_currency.value,
            },
            conflict_columns=["student_id", "subject"],
            update_columns=["price_per_class", "currency"],
        )
        return billing_models.PricingRead.model_validate(await self._get_pricing(student_id, subject))

    async def toggle_payment(self, student_id: int, subject: str, year: int, month: int) -> billing_models.SubjectPaymentRead:
        """Flips paid; payment_date becomes today when paid and is cleared when unpaid."""
        subject = require_subject(subject)
        current = await self._get_subject_payment(student_id, subject, year, month)
        new_paid = not (current.paid if current else False)
        payment_date = datetime.date.today() if new_paid else None

        log.info(f"Toggling tuition payment student={student_id} subject={subject!r} {year}-{month:02d} -> paid={new_paid}")
        await upsert(
            self.db,
            db_models.SubjectTuitionPayments,
            {
                "student_id": student_id,
                "subject": subject,
                "year": year,
                "month": month,
                "paid": new_paid,
                "payment_date": payment_date,
                "notes": current.notes if current else None,
            },
            conflict_columns=["student_id", "subject", "year", "month"],
            update_columns=["paid", "payment_date"],
        )
        record = await self._get_subject_payment(student_id, subject, year, month)
        return billing_models.SubjectPaymentRead.model_validate(record)

    async def add_subject(self, student_id: int, subject: str) -> billing_models.SubjectAddResult:
        """Adds (student, subject) at 0 PHP. An existing pair is left untouched."""
        subject = require_subject(subject)
        existing = await self._get_pricing(student_id, subject)
        if existing is not None:
            log.info(f"Subject {subject!r} already exists for student {student_id}")
            return billing_models.SubjectAddResult(
                created=False,
                message="Subject already exists",
                record=billing_models.PricingRead.model_validate(existing),
            )

        await upsert(
            self.db,
            db_models.StudentSubjectTuition,
            {
                "student_id": student_id,
                "subject": subject,
                "price_per_class": Decimal('0'),
                "currency": DEFAULT_CURRENCY.value,
            },
            conflict_columns=["student_id", "subject"],
            update_columns=[],
        )
        log.info(f"Added subject {subject!r} for student {student_id}")
        return billing_models.SubjectAddResult(
            created=True,
            message="Subject added successfully",
            record=billing_models.PricingRead.model_validate(await self._get_pricing(student_id, subject)),
        )

    async def delete_subject(self, student_id: int, subject: str) -> billing_models.SubjectDeleted:
        """Removes the pricing record and every payment record of (student, subject)."""
        subject = require_subject(subject)
        existing = await self._get_pricing(student_id, subject)
        if existing is None:
            log.warning(f"Tried to delete missing subject {subject!r} for student {student_id}")
            raise RecordNotFoundError("Subject not found for this student")

        removed = billing_models.PricingRead.model_validate(existing)
        await self.db.delete(existing)
        result = await self.db.execute(
            delete(db_models.SubjectTuitionPayments).where(
                db_models.SubjectTuitionPayments.student_id == student_id,
                db_models.SubjectTuitionPayments.subject == subject
            )
        )
        await self.db.flush()
        log.info(f"Deleted subject {subject!r} for student {student_id} ({result.rowcount} payment records)")
        return billing_models.SubjectDeleted(
            message="Subject deleted successfully",
            record=removed,
            payments_deleted=result.rowcount or 0,
        )

    # --- Commission mutations ---

    async def set_commission(
        self,
        teacher_id: int,
        student_id: int,
        commission_per_class: Decimal,
        currency: Optional[str] = None,
    ) -> billing_models.CommissionRead:
        resolved_currency = resolve_currency(currency)
        require_non_negative(commission_per_class, "commissionPerClass")

        log.info(f"Setting commission teacher={teacher_id} student={student_id} -> {commission_per_class} {resolved_currency.value}")
        await upsert(
            self.db,
            db_models.TeacherStudentCommission,
            {
                "teacher_id": teacher_id,
                "student_id": student_id,
                "commission_per_class": commission_per_class,
                "currency": resolved_currency.value,
            },
            conflict_columns=["teacher_id", "student_id"],
            update_columns=["commission_per_class", "currency"],
        )
        return billing_models.CommissionRead.model_validate(await self._get_commission(teacher_id, student_id))

    async def toggle_teacher_payment(
        self, teacher_id: int, student_id: int, year: int, month: int
    ) -> billing_models.TeacherPaymentRead:
        current = await self._get_teacher_payment(teacher_id, student_id, year, month)
        new_paid = not (current.paid if current else False)
        payment_date = datetime.date.today() if new_paid else None

        log.info(f"Toggling teacher payment teacher={teacher_id} student={student_id} {year}-{month:02d} -> paid={new_paid}")
        await upsert(
            self.db,
            db_models.TeacherStudentPayments,
            {
                "teacher_id": teacher_id,
                "student_id": student_id,
                "year": year,
                "month": month,
                "paid": new_paid,
                "payment_date": payment_date,
                "notes": current.notes if current else None,
            },
            conflict_columns=["teacher_id", "student_id", "year", "month"],
            update_columns=["paid", "payment_date"],
        )
        record = await self._get_teacher_payment(teacher_id, student_id, year, month)
        return billing_models.TeacherPaymentRead.model_validate(record)

    # --- Lookups ---

    async def list_subjects(self) -> list[str]:
        assignments = await self.scheduler.list_active_assignments()
        return sorted({assignment.subject for assignment in assignments if assignment.subject})

    async def list_teachers(self) -> list[billing_models.TeacherRead]:
        """Active teachers, one per name, keeping the lowest id."""
        by_name: dict[str, int] = {}
        for teacher in await self.scheduler.list_active_teachers():
            if teacher.name not in by_name or teacher.id < by_name[teacher.name]:
                by_name[teacher.name] = teacher.id
        return [billing_models.TeacherRead(id=teacher_id, name=name) for name, teacher_id in sorted(by_name.items())]
