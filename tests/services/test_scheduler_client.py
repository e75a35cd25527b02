'''
Tests for the httpx-based online scheduler client.
'''
import datetime
from unittest.mock import AsyncMock

import httpx
import pytest

from src.academy_attendance.common.exceptions import UpstreamUnavailableError
from src.academy_attendance.services.scheduler_client import OnlineSchedulerClient

from tests.constants import ASSIGNMENTS_PAYLOAD, STUDENTS_PAYLOAD

BASE_URL = "http://scheduler.test/api"


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload, request=httpx.Request("GET", BASE_URL))


@pytest.fixture
def scheduler_client() -> OnlineSchedulerClient:
    return OnlineSchedulerClient(BASE_URL + "/", timeout=2.0)


@pytest.mark.anyio
class TestOnlineSchedulerClient:

    async def test_inactive_students_are_filtered(self, scheduler_client: OnlineSchedulerClient, mocker):
        payload = STUDENTS_PAYLOAD + [{"id": 99, "name": "Gone Student", "is_active": False}]
        mock_get = mocker.patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=json_response(payload))

        students = await scheduler_client.list_active_students()

        assert [s.id for s in students] == [s["id"] for s in STUDENTS_PAYLOAD]
        assert mock_get.call_args.args[0] == f"{BASE_URL}/students/all-active"

    async def test_assignments_are_parsed(self, scheduler_client: OnlineSchedulerClient, mocker):
        mocker.patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=json_response(ASSIGNMENTS_PAYLOAD))

        assignments = await scheduler_client.list_active_assignments()

        science = next(a for a in assignments if a.subject == "Science")
        assert science.date == datetime.date(2025, 6, 3)
        assert science.occurrence_weekdays() == {2}
        assert science.time_slot.start_time == datetime.time(9, 0)

    async def test_range_call_sends_start_and_day_count(self, scheduler_client: OnlineSchedulerClient, mocker):
        mock_get = mocker.patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=json_response([]))

        await scheduler_client.list_assignments_in_range(datetime.date(2025, 6, 1), datetime.date(2025, 6, 30))

        assert mock_get.call_args.args[0] == f"{BASE_URL}/assignments/date-range"
        assert mock_get.call_args.kwargs["params"] == {"startDate": "2025-06-01", "daysCount": 30}

    @pytest.mark.parametrize("error", [
        httpx.ConnectTimeout("timed out"),
        httpx.ConnectError("connection refused"),
    ])
    async def test_transport_errors_raise_upstream_unavailable(self, scheduler_client: OnlineSchedulerClient, mocker, error):
        mocker.patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=error)

        with pytest.raises(UpstreamUnavailableError):
            await scheduler_client.list_active_teachers()

    async def test_error_status_raises_upstream_unavailable(self, scheduler_client: OnlineSchedulerClient, mocker):
        mocker.patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=json_response({"error": "boom"}, 500))

        with pytest.raises(UpstreamUnavailableError):
            await scheduler_client.list_active_students()

    async def test_malformed_payload_raises_upstream_unavailable(self, scheduler_client: OnlineSchedulerClient, mocker):
        mocker.patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=json_response([{"id": "not-a-number"}]))

        with pytest.raises(UpstreamUnavailableError):
            await scheduler_client.list_active_students()

    async def test_non_json_body_raises_upstream_unavailable(self, scheduler_client: OnlineSchedulerClient, mocker):
        response = httpx.Response(200, text="<html>down for maintenance</html>", request=httpx.Request("GET", BASE_URL))
        mocker.patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=response)

        with pytest.raises(UpstreamUnavailableError):
            await scheduler_client.list_active_assignments()
