'''
Holiday calendar: dates on which attendance is not recorded.
'''
import datetime
from typing import Annotated

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..common.exceptions import RecordNotFoundError
from ..common.logger import log
from ..database import models as db_models
from ..database.engine import get_db_session
from ..database.utils import month_bounds, upsert
from ..models import attendance as attendance_models


class HolidayService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def _get_by_date(self, day: datetime.date) -> db_models.Holidays | None:
        stmt = select(db_models.Holidays).filter(
            db_models.Holidays.date == day
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_holidays(self) -> list[attendance_models.HolidayRead]:
        stmt = select(db_models.Holidays).order_by(db_models.Holidays.date)
        result = await self.db.execute(stmt)
        return [attendance_models.HolidayRead.model_validate(row) for row in result.scalars().all()]

    async def list_holidays_for_month(self, year: int, month: int) -> list[attendance_models.HolidayRead]:
        start, end = month_bounds(year, month)
        stmt = select(db_models.Holidays).filter(
            db_models.Holidays.date >= start,
            db_models.Holidays.date <= end
        ).order_by(db_models.Holidays.date)
        result = await self.db.execute(stmt)
        return [attendance_models.HolidayRead.model_validate(row) for row in result.scalars().all()]

    async def get_holiday(self, day: datetime.date) -> attendance_models.HolidayRead | None:
        holiday = await self._get_by_date(day)
        return attendance_models.HolidayRead.model_validate(holiday) if holiday else None

    async def is_holiday(self, day: datetime.date) -> bool:
        return await self._get_by_date(day) is not None

    async def add_holiday(self, day: datetime.date, name: str | None = None) -> attendance_models.HolidayRead:
        """Adds a holiday, renaming it if the date is already one."""
        log.info(f"Adding holiday on {day} ({name!r})")
        await upsert(
            self.db,
            db_models.Holidays,
            {"date": day, "name": name or ''},
            conflict_columns=["date"],
            update_columns=["name"],
            touch_column=None,
        )
        holiday = await self._get_by_date(day)
        return attendance_models.HolidayRead.model_validate(holiday)

    async def delete_holiday(self, holiday_id: int) -> attendance_models.HolidayRead:
        holiday = await self.db.get(db_models.Holidays, holiday_id)
        if holiday is None:
            log.warning(f"Tried to delete non-existent holiday {holiday_id}")
            raise RecordNotFoundError("Holiday not found")
        deleted = attendance_models.HolidayRead.model_validate(holiday)
        await self.db.delete(holiday)
        await self.db.flush()
        return deleted
