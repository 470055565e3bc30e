"""CalendarEvent domain entity - one scheduled class from the calendar provider"""
from dataclasses import dataclass
from datetime import date

from hourledger.utils.dates import compute_duration_minutes


@dataclass(frozen=True)
class CalendarEvent:
    date: date
    start_time: str  # HH:MM
    end_time: str    # HH:MM
    summary: str

    @property
    def duration_minutes(self) -> int:
        return compute_duration_minutes(self.start_time, self.end_time)

    @property
    def attendee_name(self) -> str:
        return self.summary.strip()


def sort_events(events: list[CalendarEvent]) -> list[CalendarEvent]:
    return sorted(events, key=lambda e: (e.date, e.start_time))
