'''
Tests for the BillingService: tuition rows, commissions and their mutations.
'''
import datetime
from decimal import Decimal

import pytest

from src.academy_attendance.common.exceptions import InvalidInputError, RecordNotFoundError
from src.academy_attendance.database.db_enums import CurrencyEnum, RowSourceEnum
from src.academy_attendance.services.attendance_service import AttendanceService
from src.academy_attendance.services.billing_service import BillingService, resolve_currency
from src.academy_attendance.services.roster_service import RosterService

from tests.constants import (
    JUNE_2, JUNE_3, JUNE_4, JULY_1,
    STUDENT_BORA_ID, STUDENT_JIHYE_ID, STUDENT_MIN_ID,
    TEACHER_ANNA_ID, TEACHER_BEN_ID,
    TEST_MONTH, TEST_YEAR,
)
from tests.fakes import FakeSchedulerClient


def row_for(rows, student_id, subject):
    return next(row for row in rows if row.student_id == student_id and row.subject == subject)


@pytest.mark.anyio
class TestComputeTuition:

    async def test_present_count_is_shared_across_subjects(
        self, billing_service: BillingService, attendance_service: AttendanceService
    ):
        """Math at 100 and Science at 200 with 3 presents in the month bill 300 and 600."""
        print("\n--- Testing shared present count ---")

        # 1. ARRANGE
        await billing_service.set_price(STUDENT_JIHYE_ID, "Math", Decimal("100"), "PHP")
        await billing_service.set_price(STUDENT_JIHYE_ID, "Science", Decimal("200"), "PHP")
        await attendance_service.set_status(STUDENT_JIHYE_ID, "Math", JUNE_2, "present")
        await attendance_service.set_status(STUDENT_JIHYE_ID, "Science", JUNE_3, "present")
        await attendance_service.set_status(STUDENT_JIHYE_ID, None, JUNE_4, "present")
        # outside the month / not present
        await attendance_service.set_status(STUDENT_JIHYE_ID, "Math", JULY_1, "present")
        await attendance_service.set_status(STUDENT_JIHYE_ID, "Math", datetime.date(2025, 6, 6), "absent")

        # 2. ACT
        rows = await billing_service.compute_tuition(TEST_YEAR, TEST_MONTH)

        # 3. ASSERT
        math = row_for(rows, STUDENT_JIHYE_ID, "Math")
        science = row_for(rows, STUDENT_JIHYE_ID, "Science")
        assert math.present_count == science.present_count == 3
        assert math.total_tuition == Decimal("300")
        assert science.total_tuition == Decimal("600")
        print("--- Passed ---")

    async def test_total_is_price_times_present_count(
        self, billing_service: BillingService, attendance_service: AttendanceService
    ):
        await billing_service.set_price(STUDENT_MIN_ID, "English", Decimal("333.33"), "KRW")
        for day in (JUNE_3, JUNE_4, datetime.date(2025, 6, 10)):
            await attendance_service.set_status(STUDENT_MIN_ID, "English", day, "present")

        rows = await billing_service.compute_tuition(TEST_YEAR, TEST_MONTH)

        for row in rows:
            assert row.total_tuition == row.price_per_class * row.present_count
        english = row_for(rows, STUDENT_MIN_ID, "English")
        assert english.total_tuition == Decimal("999.99")
        assert english.currency == CurrencyEnum.KRW

    async def test_missing_pricing_defaults_to_zero_php(self, billing_service: BillingService):
        rows = await billing_service.compute_tuition(TEST_YEAR, TEST_MONTH)

        for row in rows:
            assert row.price_per_class == Decimal("0")
            assert row.currency == CurrencyEnum.PHP
            assert row.paid is False
            assert row.payment_date is None

    async def test_hidden_row_is_not_billed(self, billing_service: BillingService, roster_service: RosterService):
        await roster_service.hide_row(STUDENT_JIHYE_ID, "Science", TEST_YEAR, TEST_MONTH)

        may_rows = await billing_service.compute_tuition(TEST_YEAR, 5)
        june_rows = await billing_service.compute_tuition(TEST_YEAR, TEST_MONTH)

        assert any(row.key == (STUDENT_JIHYE_ID, "Science") for row in may_rows)
        assert not any(row.key == (STUDENT_JIHYE_ID, "Science") for row in june_rows)

    async def test_overview_summary(self, billing_service: BillingService, attendance_service: AttendanceService):
        await billing_service.set_price(STUDENT_JIHYE_ID, "Math", Decimal("100"))
        await attendance_service.set_status(STUDENT_JIHYE_ID, "Math", JUNE_2, "present")
        await billing_service.toggle_payment(STUDENT_JIHYE_ID, "Math", TEST_YEAR, TEST_MONTH)

        overview = await billing_service.tuition_overview(TEST_YEAR, TEST_MONTH)

        assert overview.summary.total_rows == len(overview.rows)
        assert overview.summary.paid_count == 1
        # Science shares the present mark but has no price: unpaid with total 0
        assert overview.summary.unpaid_count == 0
        assert overview.summary.by_currency[CurrencyEnum.PHP].paid == Decimal("100")


@pytest.mark.anyio
class TestPricingMutations:

    async def test_currency_switch_keeps_price(self, billing_service: BillingService):
        await billing_service.set_price(STUDENT_JIHYE_ID, "Math", Decimal("100"), "PHP")

        switched = await billing_service.set_price(STUDENT_JIHYE_ID, "Math", None, "KRW")

        assert switched.price_per_class == Decimal("100")
        assert switched.currency == CurrencyEnum.KRW

    async def test_omitted_currency_is_php(self, billing_service: BillingService):
        pricing = await billing_service.set_price(STUDENT_JIHYE_ID, "Math", Decimal("150"))

        assert pricing.currency == CurrencyEnum.PHP

    async def test_invalid_currency_is_rejected(self, billing_service: BillingService):
        with pytest.raises(InvalidInputError):
            await billing_service.set_price(STUDENT_JIHYE_ID, "Math", Decimal("100"), "USD")

    async def test_negative_price_is_rejected(self, billing_service: BillingService):
        with pytest.raises(InvalidInputError):
            await billing_service.set_price(STUDENT_JIHYE_ID, "Math", Decimal("-1"))

    async def test_blank_subject_is_rejected(self, billing_service: BillingService):
        with pytest.raises(InvalidInputError):
            await billing_service.set_price(STUDENT_JIHYE_ID, "  ", Decimal("100"))

    async def test_toggle_payment_sets_and_clears_date(self, billing_service: BillingService):
        paid = await billing_service.toggle_payment(STUDENT_JIHYE_ID, "Math", TEST_YEAR, TEST_MONTH)
        unpaid = await billing_service.toggle_payment(STUDENT_JIHYE_ID, "Math", TEST_YEAR, TEST_MONTH)

        assert paid.paid is True
        assert paid.payment_date == datetime.date.today()
        assert unpaid.paid is False
        assert unpaid.payment_date is None

    async def test_add_subject_is_a_noop_when_present(self, billing_service: BillingService):
        created = await billing_service.add_subject(STUDENT_BORA_ID, "Piano")
        await billing_service.set_price(STUDENT_BORA_ID, "Piano", Decimal("500"))
        again = await billing_service.add_subject(STUDENT_BORA_ID, "Piano")

        assert created.created is True
        assert created.record.price_per_class == Decimal("0")
        assert again.created is False
        assert again.record.price_per_class == Decimal("500")

    async def test_added_subject_appears_in_tuition(self, billing_service: BillingService):
        await billing_service.add_subject(STUDENT_BORA_ID, "Piano")

        rows = await billing_service.compute_tuition(TEST_YEAR, TEST_MONTH)
        bora_rows = [row for row in rows if row.student_id == STUDENT_BORA_ID]

        assert [(row.subject, row.source) for row in bora_rows] == [("Piano", RowSourceEnum.PRICING)]

    async def test_delete_subject_cascades_payments(self, billing_service: BillingService):
        """Deleting a subject drops its pricing, its payments and its billing row."""
        print("\n--- Testing delete-subject cascade ---")

        # 1. ARRANGE
        await billing_service.add_subject(STUDENT_BORA_ID, "Piano")
        await billing_service.toggle_payment(STUDENT_BORA_ID, "Piano", TEST_YEAR, TEST_MONTH)
        await billing_service.toggle_payment(STUDENT_BORA_ID, "Piano", TEST_YEAR, 5)

        # 2. ACT
        deleted = await billing_service.delete_subject(STUDENT_BORA_ID, "Piano")

        # 3. ASSERT
        assert deleted.payments_deleted == 2
        assert deleted.record.subject == "Piano"
        assert await billing_service._get_subject_payment(STUDENT_BORA_ID, "Piano", TEST_YEAR, TEST_MONTH) is None

        rows = await billing_service.compute_tuition(TEST_YEAR, TEST_MONTH)
        assert [row.subject for row in rows if row.student_id == STUDENT_BORA_ID] == [None]
        print("--- Passed ---")

    async def test_delete_missing_subject_raises(self, billing_service: BillingService):
        with pytest.raises(RecordNotFoundError):
            await billing_service.delete_subject(STUDENT_BORA_ID, "Piano")


@pytest.mark.anyio
class TestCommissions:

    async def test_primary_teacher_has_most_assignments(
        self, billing_service: BillingService, attendance_service: AttendanceService
    ):
        await billing_service.set_commission(TEACHER_ANNA_ID, STUDENT_JIHYE_ID, Decimal("50"))
        await attendance_service.set_status(STUDENT_JIHYE_ID, "Math", JUNE_2, "present")
        await attendance_service.set_status(STUDENT_JIHYE_ID, "Science", JUNE_3, "present")

        rows = await billing_service.compute_commissions(TEST_YEAR, TEST_MONTH)

        assert [(row.teacher_name, row.student_id) for row in rows] == [
            ("Teacher Anna", STUDENT_JIHYE_ID),
            ("Teacher Ben", STUDENT_MIN_ID),
        ]
        jihye = rows[0]
        assert jihye.teacher_id == TEACHER_ANNA_ID
        assert jihye.class_count == 2
        assert jihye.total_commission == Decimal("100")
        assert jihye.id == f"{TEACHER_ANNA_ID}-{STUDENT_JIHYE_ID}"
        assert rows[1].commission_per_class == Decimal("0")
        assert rows[1].currency == CurrencyEnum.PHP

    async def test_tie_goes_to_lowest_teacher_id(self, billing_service: BillingService, fake_scheduler: FakeSchedulerClient):
        fake_scheduler.assignments = FakeSchedulerClient(assignments=[
            {"id": 1, "subject": "Math", "weekdays": [1], "students": [{"id": STUDENT_JIHYE_ID, "name": "Kim Ji Hye"}],
             "teachers": [{"id": TEACHER_BEN_ID, "name": "Teacher Ben"}]},
            {"id": 2, "subject": "Math", "weekdays": [2], "students": [{"id": STUDENT_JIHYE_ID, "name": "Kim Ji Hye"}],
             "teachers": [{"id": TEACHER_ANNA_ID, "name": "Teacher Anna"}]},
        ]).assignments

        rows = await billing_service.compute_commissions(TEST_YEAR, TEST_MONTH)

        assert [(row.student_id, row.teacher_id) for row in rows] == [(STUDENT_JIHYE_ID, TEACHER_ANNA_ID)]

    async def test_toggle_teacher_payment(self, billing_service: BillingService):
        paid = await billing_service.toggle_teacher_payment(TEACHER_BEN_ID, STUDENT_MIN_ID, TEST_YEAR, TEST_MONTH)

        rows = await billing_service.compute_commissions(TEST_YEAR, TEST_MONTH)
        min_row = next(row for row in rows if row.student_id == STUDENT_MIN_ID)

        assert paid.paid is True
        assert min_row.paid is True
        assert min_row.payment_date == datetime.date.today()

    async def test_set_commission_rejects_bad_input(self, billing_service: BillingService):
        with pytest.raises(InvalidInputError):
            await billing_service.set_commission(TEACHER_ANNA_ID, STUDENT_JIHYE_ID, Decimal("-5"))
        with pytest.raises(InvalidInputError):
            await billing_service.set_commission(TEACHER_ANNA_ID, STUDENT_JIHYE_ID, Decimal("5"), "EUR")


@pytest.mark.anyio
class TestLookups:

    async def test_list_subjects(self, billing_service: BillingService):
        assert await billing_service.list_subjects() == ["English", "Math", "Science"]

    async def test_list_teachers_dedupes_by_name(self, billing_service: BillingService):
        teachers = await billing_service.list_teachers()

        assert [(t.id, t.name) for t in teachers] == [(TEACHER_ANNA_ID, "Teacher Anna"), (TEACHER_BEN_ID, "Teacher Ben")]


def test_resolve_currency():
    assert resolve_currency(None) == CurrencyEnum.PHP
    assert resolve_currency("KRW") == CurrencyEnum.KRW
    with pytest.raises(InvalidInputError):
        resolve_currency("php")
