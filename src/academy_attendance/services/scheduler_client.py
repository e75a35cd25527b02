'''
Read-only client for the online scheduler, which owns students, teachers
and assignments. Every call goes over HTTP; nothing is cached.
'''
import datetime
from typing import Annotated, Any, Optional, Protocol

import httpx
from fastapi import Depends
from pydantic import TypeAdapter, ValidationError

from ..common.config import Settings
from ..common.exceptions import UpstreamUnavailableError
from ..common.logger import log
from ..models.scheduler import SchedulerAssignment, SchedulerStudent, SchedulerTeacher
from .dependencies import get_settings

_students_adapter = TypeAdapter(list[SchedulerStudent])
_teachers_adapter = TypeAdapter(list[SchedulerTeacher])
_assignments_adapter = TypeAdapter(list[SchedulerAssignment])


class SchedulerClient(Protocol):
    """The interface the services depend on; tests provide a fake."""

    async def list_active_students(self) -> list[SchedulerStudent]: ...

    async def list_active_teachers(self) -> list[SchedulerTeacher]: ...

    async def list_active_assignments(self) -> list[SchedulerAssignment]: ...

    async def list_assignments_in_range(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> list[SchedulerAssignment]: ...


class OnlineSchedulerClient:
    """
    httpx implementation of SchedulerClient.
    Any transport failure, timeout, error status or malformed payload is
    raised as UpstreamUnavailableError, never turned into an empty list.
    """
    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        log.info(f"Fetching {url} from online scheduler (params={params})")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            log.error(f"Online scheduler timed out on {url}: {e}", exc_info=True)
            raise UpstreamUnavailableError("Online scheduler timed out. Please try again.")
        except httpx.RequestError as e:
            log.error(f"Online scheduler unreachable on {url}: {e}", exc_info=True)
            raise UpstreamUnavailableError()
        except httpx.HTTPStatusError as e:
            log.error(f"Online scheduler returned {e.response.status_code} for {url}: {e.response.text}", exc_info=True)
            raise UpstreamUnavailableError(f"Online scheduler returned an error ({e.response.status_code}).")
        except ValueError as e:
            log.error(f"Online scheduler returned a non-JSON body for {url}: {e}", exc_info=True)
            raise UpstreamUnavailableError("Online scheduler returned an unreadable response.")

    @staticmethod
    def _parse(adapter: TypeAdapter, payload: Any, what: str) -> list:
        try:
            return adapter.validate_python(payload)
        except ValidationError as e:
            log.error(f"Malformed {what} payload from online scheduler: {e}")
            raise UpstreamUnavailableError(f"Online scheduler returned malformed {what} data.")

    async def list_active_students(self) -> list[SchedulerStudent]:
        # /all-active also returns students sharing a display name
        payload = await self._get("/students/all-active")
        students = self._parse(_students_adapter, payload, "student")
        return [student for student in students if student.is_active]

    async def list_active_teachers(self) -> list[SchedulerTeacher]:
        payload = await self._get("/teachers/active")
        teachers = self._parse(_teachers_adapter, payload, "teacher")
        return [teacher for teacher in teachers if teacher.is_active]

    async def list_active_assignments(self) -> list[SchedulerAssignment]:
        payload = await self._get("/assignments/active")
        assignments = self._parse(_assignments_adapter, payload, "assignment")
        return [assignment for assignment in assignments if assignment.is_active]

    async def list_assignments_in_range(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> list[SchedulerAssignment]:
        days_count = (end_date - start_date).days + 1
        payload = await self._get(
            "/assignments/date-range",
            params={"startDate": start_date.isoformat(), "daysCount": days_count},
        )
        assignments = self._parse(_assignments_adapter, payload, "assignment")
        return [assignment for assignment in assignments if assignment.is_active]


def get_scheduler_client(
    settings: Annotated[Settings, Depends(get_settings)]
) -> SchedulerClient:
    """FastAPI dependency building the scheduler client from injected settings."""
    return OnlineSchedulerClient(settings.SCHEDULER_API_URL, settings.SCHEDULER_TIMEOUT_SECONDS)
