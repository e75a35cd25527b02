'''
Pure reductions over computed billing and commission rows.
'''
from decimal import Decimal
from typing import Callable, Iterable, TypeVar

from ..models.billing import BillingSummary, CurrencySummary

RowT = TypeVar('RowT')


def summarize_rows(
    rows: Iterable[RowT],
    total_of: Callable[[RowT], Decimal],
    classes_of: Callable[[RowT], int],
) -> BillingSummary:
    """
    Groups row totals by currency.
    A paid row counts towards `paid`, an unpaid row with a positive total
    towards `unpaid`, and an unpaid row with a zero total towards neither.
    """
    summary = BillingSummary()
    for row in rows:
        total = total_of(row)
        summary.total_rows += 1
        summary.total_classes += classes_of(row)

        bucket = summary.by_currency.setdefault(row.currency, CurrencySummary())
        bucket.total += total

        if row.paid:
            summary.paid_count += 1
            bucket.paid += total
            bucket.paid_count += 1
        elif total > 0:
            summary.unpaid_count += 1
            bucket.unpaid += total
            bucket.unpaid_count += 1
    return summary


def summarize_tuition(rows) -> BillingSummary:
    return summarize_rows(rows, lambda row: row.total_tuition, lambda row: row.present_count)


def summarize_commissions(rows) -> BillingSummary:
    return summarize_rows(rows, lambda row: row.total_commission, lambda row: row.class_count)
