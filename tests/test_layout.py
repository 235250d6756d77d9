from dataclasses import dataclass
from datetime import date, datetime, timezone

import pytz

from event_calendar.layout import (
    MIN_EVENT_HEIGHT,
    SlotPosition,
    days_in_month_view,
    days_in_week_view,
    layout_day,
    layout_week,
    month_grid,
    position_event,
)

DAY = date(2024, 1, 15)


@dataclass
class FakeEvent:
    title: str
    start_time: datetime
    end_time: datetime
    all_day: bool = False


def at(day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


def test_position_inside_day():
    standup = FakeEvent("Standup", at(15, 10), at(15, 10, 30))
    assert position_event(standup, DAY) == SlotPosition(top=600, height=30)


def test_short_event_gets_minimum_height():
    ping = FakeEvent("Ping", at(15, 14), at(15, 14, 5))
    assert position_event(ping, DAY) == SlotPosition(top=840, height=MIN_EVENT_HEIGHT)


def test_position_clamped_to_day_start():
    overnight = FakeEvent("Overnight", at(14, 22), at(15, 2))
    assert position_event(overnight, DAY) == SlotPosition(top=0, height=120)
    assert position_event(overnight, date(2024, 1, 14)) == SlotPosition(top=1320, height=119)


def test_position_clamped_for_multi_day_event():
    offsite = FakeEvent("Offsite", at(14, 9), at(16, 17))
    assert position_event(offsite, DAY) == SlotPosition(top=0, height=1439)


def test_all_day_event_is_not_positioned():
    holiday = FakeEvent("Holiday", at(15), at(15, 23, 59), all_day=True)
    assert position_event(holiday, DAY) is None


def test_position_in_display_timezone():
    tz = pytz.timezone("America/New_York")
    call = FakeEvent("Call", at(15, 15), at(15, 16, 30))
    assert position_event(call, DAY, tz) == SlotPosition(top=600, height=90)


def test_position_is_deterministic():
    standup = FakeEvent("Standup", at(15, 10), at(15, 10, 30))
    assert position_event(standup, DAY) == position_event(standup, DAY)


def test_layout_day_separates_lanes():
    holiday = FakeEvent("Holiday", at(15), at(15, 23, 59), all_day=True)
    standup = FakeEvent("Standup", at(15, 10), at(15, 10, 30))
    tomorrow = FakeEvent("Tomorrow", at(16, 10), at(16, 11))

    layout = layout_day([holiday, standup, tomorrow], DAY)
    assert layout.all_day == [holiday]
    assert [item.event for item in layout.timed] == [standup]
    assert layout.timed[0].position == SlotPosition(top=600, height=30)


def test_week_view_runs_sunday_to_saturday():
    days = days_in_week_view(DAY)
    assert days[0] == date(2024, 1, 14)
    assert days[-1] == date(2024, 1, 20)
    assert len(days) == 7


def test_layout_week_has_a_column_per_day():
    standup = FakeEvent("Standup", at(15, 10), at(15, 10, 30))
    columns = layout_week([standup], DAY)
    assert [column.day for column in columns] == days_in_week_view(DAY)
    assert [len(column.timed) for column in columns] == [0, 1, 0, 0, 0, 0, 0]


def test_month_view_pads_to_whole_weeks():
    days = days_in_month_view(date(2024, 1, 20))
    assert days[0] == date(2023, 12, 31)
    assert days[-1] == date(2024, 2, 3)
    assert len(days) % 7 == 0


def test_month_grid_limits_events_per_cell():
    events = [FakeEvent(f"Meeting {n}", at(15, 8 + n), at(15, 9 + n)) for n in range(5)]
    cells = {cell.day: cell for cell in month_grid(events, DAY)}

    busy = cells[DAY]
    assert [event.title for event in busy.events] == ["Meeting 0", "Meeting 1", "Meeting 2"]
    assert busy.overflow == 2
    assert busy.overflow_label == "+2 more"
    assert busy.in_month

    assert cells[date(2023, 12, 31)].in_month is False
    assert cells[date(2023, 12, 31)].is_weekend
    assert cells[date(2024, 1, 16)].overflow_label is None
