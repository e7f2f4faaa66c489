"""
Opening hours: one row per weekday in the schedule table.

A day is open when both its opening and closing times are set and valid.
Days with no stored row are shown closed with the default 09:00-18:00
window.
"""

import asyncio
import logging
from typing import Optional

from menu_admin.core.config import Settings, get_settings
from menu_admin.schemas import (
    WEEKDAY_LABELS,
    DaySchedule,
    ScheduleResponse,
    ScheduleUpdate,
    Weekday,
    normalize_time,
)
from menu_admin.services.backend import BackendError, BaseBackend, Row
from menu_admin.services.crud import EntityService

logger = logging.getLogger(__name__)


class ScheduleSaveError(BackendError):
    """One or more weekday writes failed."""

    def __init__(self, failures: dict[str, BackendError]):
        super().__init__("Error saving some schedules", code="partial_failure")
        self.failures = failures


class ScheduleService:
    def __init__(self, backend: BaseBackend, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.rows = EntityService(backend, settings.schedule_table, "schedule")
        self.default_open = settings.default_open_time
        self.default_close = settings.default_close_time

    def _default_day(self, day: Weekday) -> DaySchedule:
        return DaySchedule(
            day=day,
            label=WEEKDAY_LABELS[day],
            is_open=False,
            open_time=self.default_open,
            close_time=self.default_close,
        )

    @staticmethod
    def _stored_time(value: Optional[str]) -> Optional[str]:
        """HH:MM, or None when the stored value is empty or malformed."""
        if not value:
            return None
        try:
            return normalize_time(value)
        except ValueError:
            logger.warning(f"Ignoring malformed stored time {value!r}")
            return None

    def _day_from_row(self, day: Weekday, row: Row) -> DaySchedule:
        opens = self._stored_time(row.get("hora_inicio"))
        closes = self._stored_time(row.get("hora_fim"))
        return DaySchedule(
            day=day,
            label=WEEKDAY_LABELS[day],
            id=row.get("id"),
            is_open=bool(opens and closes),
            open_time=opens or self.default_open,
            close_time=closes or self.default_close,
        )

    async def get_schedule(self) -> ScheduleResponse:
        """All seven weekdays, Monday first."""
        days = {day: self._default_day(day) for day in Weekday}

        for row in await self.rows.list():
            try:
                day = Weekday(row.get("dia_semana"))
            except ValueError:
                logger.debug(f"Skipping schedule row with unknown weekday {row.get('dia_semana')!r}")
                continue
            days[day] = self._day_from_row(day, row)

        return ScheduleResponse(days=list(days.values()))

    async def save_schedule(self, data: ScheduleUpdate) -> ScheduleResponse:
        """
        Write every weekday concurrently and reload.

        Days missing from the payload are rewritten with their current values.
        Closed days store null times.

        Raises:
            ScheduleSaveError: If any weekday failed to save
        """
        current = {d.day: d for d in (await self.get_schedule()).days}

        for change in data.days:
            day = current[change.day]
            day.is_open = change.is_open
            if change.open_time:
                day.open_time = change.open_time
            if change.close_time:
                day.close_time = change.close_time

        days = list(current.values())
        results = await asyncio.gather(
            *(self.rows.save(day.id, self._row_for(day)) for day in days),
            return_exceptions=True,
        )

        failures = {}
        for day, result in zip(days, results):
            if isinstance(result, BackendError):
                failures[day.day.value] = result
            elif isinstance(result, BaseException):
                raise result
        if failures:
            logger.error(f"Schedule save failed for: {', '.join(failures)}")
            raise ScheduleSaveError(failures)

        logger.info("Opening hours saved")
        return await self.get_schedule()

    @staticmethod
    def _row_for(day: DaySchedule) -> Row:
        return {
            "dia_semana": day.day.value,
            "hora_inicio": day.open_time if day.is_open else None,
            "hora_fim": day.close_time if day.is_open else None,
        }
