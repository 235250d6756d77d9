import asyncio
from datetime import date, datetime, timezone
from uuid import uuid4

import httpx
import pytest
from httpx import ASGITransport

from event_calendar.client import NETWORK_ERROR_MESSAGE, ApiError, EventClient
from event_calendar.controller import FETCH_FAILED_MESSAGE, CalendarController
from event_calendar.state import EventDraft, ViewMode

BASE_URL = "http://testserver/api"


def record(title: str, start: str = "2024-01-15T10:00:00Z", end: str = "2024-01-15T11:00:00Z") -> dict:
    return {
        "id": str(uuid4()),
        "title": title,
        "description": "",
        "startTime": start,
        "endTime": end,
        "allDay": False,
        "color": "#4285f4",
        "location": "",
        "recurring": "none",
        "version": 1,
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }


def mock_client(handler) -> EventClient:
    return EventClient(BASE_URL, timeout=1.0, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_events_sends_range_and_parses_records():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[record("Standup")])

    client = mock_client(handler)
    events = await client.get_events(
        datetime(2024, 1, 1, tzinfo=timezone.utc),
        datetime(2024, 1, 31, 23, 59, 59, 999000, tzinfo=timezone.utc),
    )

    assert seen["path"] == "/api/events"
    assert seen["params"] == {
        "startDate": "2024-01-01T00:00:00.000Z",
        "endDate": "2024-01-31T23:59:59.999Z",
    }
    assert [event.title for event in events] == ["Standup"]
    assert events[0].start_time == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_error_response_message_is_surfaced():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Event not found", "kind": "NotFound", "status": 404})

    with pytest.raises(ApiError) as excinfo:
        await mock_client(handler).get_event(uuid4())
    assert excinfo.value.message == "Event not found"
    assert excinfo.value.status_code == 404
    assert excinfo.value.kind == "NotFound"


@pytest.mark.asyncio
async def test_error_response_without_body_gets_generic_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    with pytest.raises(ApiError) as excinfo:
        await mock_client(handler).get_events()
    assert excinfo.value.message == "An error occurred"


@pytest.mark.asyncio
async def test_timeout_becomes_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ApiError) as excinfo:
        await mock_client(handler).get_events()
    assert excinfo.value.message == NETWORK_ERROR_MESSAGE
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_update_sends_if_match_version():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["if_match"] = request.headers.get("If-Match")
        seen["method"] = request.method
        return httpx.Response(200, json=record("Renamed"))

    event_id = uuid4()
    await mock_client(handler).update_event(event_id, {"title": "Renamed"}, version=3)
    assert seen == {"if_match": '"3"', "method": "PUT"}


@pytest.mark.asyncio
async def test_controller_discards_stale_fetch():
    calls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            await asyncio.sleep(0.05)
            return httpx.Response(200, json=[record("Stale")])
        return httpx.Response(200, json=[record("Fresh")])

    controller = CalendarController(mock_client(handler), today=date(2024, 1, 15))
    await asyncio.gather(controller.refresh(), controller.refresh())

    assert [event.title for event in controller.state.events] == ["Fresh"]
    assert controller.state.loading is False
    assert controller.state.fetch_generation == 2


@pytest.mark.asyncio
async def test_controller_reports_fetch_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    controller = CalendarController(mock_client(handler), today=date(2024, 1, 15))
    await controller.refresh()

    assert controller.state.notification.message == FETCH_FAILED_MESSAGE
    assert controller.state.notification.kind == "error"
    assert controller.state.loading is False


@pytest.mark.asyncio
async def test_controller_fetches_visible_week():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=[])

    controller = CalendarController(mock_client(handler), today=date(2024, 1, 17))
    await controller.change_view(ViewMode.WEEK)

    assert seen["startDate"] == "2024-01-14T00:00:00.000Z"
    assert seen["endDate"] == "2024-01-20T23:59:59.999Z"


@pytest.mark.asyncio
async def test_controller_round_trip_against_app(app):
    client = EventClient(BASE_URL, transport=ASGITransport(app=app))
    controller = CalendarController(client, today=date(2024, 1, 15), view=ViewMode.DAY)

    controller.open_create(datetime(2024, 1, 15, 10, tzinfo=timezone.utc))
    draft = controller.state.selected_event
    created = await controller.save(EventDraft(draft.start_time, draft.end_time, title="Standup"))

    assert created.title == "Standup"
    assert controller.state.modal_open is False
    assert controller.state.notification.message == "Event created successfully!"
    assert [event.id for event in controller.state.events] == [created.id]

    controller.open_event(created)
    edited = controller.state.selected_event
    updated = await controller.save(
        EventDraft(edited.start_time, edited.end_time, title="Daily standup", id=edited.id),
        version=created.version,
    )
    assert updated.title == "Daily standup"
    assert updated.version == 2
    assert controller.state.notification.message == "Event updated successfully!"

    controller.open_event(updated)
    deleted = await controller.delete_selected()
    assert deleted.id == created.id
    assert controller.state.events == ()
    assert controller.state.notification.message == "Event deleted successfully!"


@pytest.mark.asyncio
async def test_controller_normalizes_all_day_events(app):
    client = EventClient(BASE_URL, transport=ASGITransport(app=app))
    controller = CalendarController(client, today=date(2024, 1, 15))

    start = datetime(2024, 1, 15, 9, tzinfo=timezone.utc)
    saved = await controller.save(EventDraft(start, start, title="Holiday", all_day=True))

    assert saved.all_day is True
    assert saved.start_time == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert saved.end_time == datetime(2024, 1, 15, 23, 59, 59, 999000, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_controller_rejects_invalid_draft_without_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    controller = CalendarController(mock_client(handler), today=date(2024, 1, 15))
    start = datetime(2024, 1, 15, 9, tzinfo=timezone.utc)

    assert await controller.save(EventDraft(start, start, title="Zero")) is None
    assert controller.state.notification.message == "End time must be after start time"


@pytest.mark.asyncio
async def test_controller_surfaces_api_error_on_save(app):
    client = EventClient(BASE_URL, transport=ASGITransport(app=app))
    controller = CalendarController(client, today=date(2024, 1, 15))
    start = datetime(2024, 1, 15, 9, tzinfo=timezone.utc)

    with pytest.raises(ApiError):
        await controller.save(
            EventDraft(start, start.replace(hour=10), title="Ghost", id=uuid4()),
        )
    assert controller.state.notification.message == "Event not found"
    assert controller.state.notification.kind == "error"
