"""
Checkin domain entity - one attended class
"""
from dataclasses import dataclass
from datetime import date

from hourledger.utils.dates import compute_duration_minutes


@dataclass(frozen=True)
class Checkin:
    id: int | None
    student_id: int
    class_date: date
    duration_minutes: float
    coach_id: int | None = None
    time_slot: str = ""

    @property
    def consumed_minutes(self) -> float:
        # Non-positive durations occupy a bucket slot but move no minutes.
        return self.duration_minutes if self.duration_minutes > 0 else 0.0


def duration_from_time_slot(time_slot: str | None) -> int:
    """
    "10:00-11:30" -> 90

    Anything that does not split into two clock times yields 0.
    """
    if not time_slot:
        return 0
    parts = time_slot.replace("–", "-").split("-")
    if len(parts) != 2:
        return 0
    return compute_duration_minutes(parts[0], parts[1])


def sort_checkins(checkins: list[Checkin]) -> list[Checkin]:
    """Ascending by class date; equal dates keep their incoming order."""
    return sorted(checkins, key=lambda c: c.class_date)
