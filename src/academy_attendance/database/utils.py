'''
Storage helpers shared by the services: subject key mapping, month bounds
and dialect-aware upserts.
'''
import calendar
import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from ..common.logger import log

NO_SUBJECT = ''


def subject_to_db(subject: Optional[str]) -> str:
    """None (and the empty string) map to the stored no-subject marker."""
    return subject if subject else NO_SUBJECT


def subject_from_db(value: Optional[str]) -> Optional[str]:
    return value if value else None


def month_bounds(year: int, month: int) -> tuple[datetime.date, datetime.date]:
    """First and last calendar day of a billing period."""
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, 1), datetime.date(year, month, last_day)


def period_index(year: int, month: int) -> int:
    return year * 12 + month


async def upsert(
    db: AsyncSession,
    model: Any,
    values: dict[str, Any],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
    touch_column: Optional[str] = 'updated_at',
) -> None:
    """
    INSERT ... ON CONFLICT (conflict_columns) DO UPDATE in a single statement,
    using the PostgreSQL or SQLite flavour depending on the session's bind.
    An empty update_columns turns it into ON CONFLICT DO NOTHING.
    """
    dialect_name = db.get_bind().dialect.name
    if dialect_name == 'postgresql':
        insert_fn = postgresql.insert
    elif dialect_name == 'sqlite':
        insert_fn = sqlite.insert
    else:
        log.error(f"Upsert requested on unsupported dialect '{dialect_name}'.")
        raise RuntimeError(f"Unsupported database dialect: {dialect_name}")

    stmt = insert_fn(model).values(**values)
    if update_columns:
        set_ = {column: stmt.excluded[column] for column in update_columns}
        if touch_column:
            set_[touch_column] = func.now()
        stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=set_)
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))
    await db.execute(stmt)
