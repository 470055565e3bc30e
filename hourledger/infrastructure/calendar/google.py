"""
Google Calendar adapter - lists scheduled classes as CalendarEvent records

Timed events only: all-day entries and events without a title are skipped.
HTTP errors propagate to the caller.
"""
import logging
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import requests

from hourledger.config import Settings, get_settings
from hourledger.domain.calendar_event import CalendarEvent, sort_events

logger = logging.getLogger(__name__)


class GoogleCalendarProvider:
    def __init__(
        self,
        calendar_id: str,
        token: str,
        base_url: str = "https://www.googleapis.com/calendar/v3",
        tz_name: str = "Asia/Taipei",
        timeout: float = 10.0,
    ):
        self.calendar_id = calendar_id
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.tz = ZoneInfo(tz_name)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "GoogleCalendarProvider":
        settings = settings or get_settings()
        return cls(
            calendar_id=settings.GOOGLE_CALENDAR_ID,
            token=settings.GOOGLE_CALENDAR_TOKEN,
            base_url=settings.GOOGLE_CALENDAR_BASE_URL,
            tz_name=settings.TIMEZONE,
            timeout=settings.GOOGLE_CALENDAR_TIMEOUT_SECONDS,
        )

    def list_events(self, range_start: date, range_end: date) -> list[CalendarEvent]:
        """Events whose start falls on a day in [range_start, range_end]."""
        if not self.calendar_id:
            logger.warning("GOOGLE_CALENDAR_ID is not set; no scheduled classes will be counted")
            return []

        params = {
            "timeMin": datetime.combine(range_start, time.min, tzinfo=self.tz).isoformat(),
            "timeMax": datetime.combine(range_end + timedelta(days=1), time.min, tzinfo=self.tz).isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": 2500,
        }
        url = f"{self.base_url}/calendars/{requests.utils.quote(self.calendar_id, safe='')}/events"
        headers = {"Authorization": f"Bearer {self.token}"}

        events: list[CalendarEvent] = []
        page_token = None
        while True:
            if page_token:
                params["pageToken"] = page_token
            resp = requests.get(url, params=params, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
            for item in payload.get("items", []):
                event = self._to_event(item)
                if event is not None:
                    events.append(event)
            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        logger.info("Fetched %d calendar event(s) for %s..%s", len(events), range_start, range_end)
        return sort_events(events)

    def _to_event(self, item: dict) -> CalendarEvent | None:
        summary = (item.get("summary") or "").strip()
        start = (item.get("start") or {}).get("dateTime")
        end = (item.get("end") or {}).get("dateTime")
        if not summary or not start or not end:
            return None
        start_dt = datetime.fromisoformat(start).astimezone(self.tz)
        end_dt = datetime.fromisoformat(end).astimezone(self.tz)
        return CalendarEvent(
            date=start_dt.date(),
            start_time=start_dt.strftime("%H:%M"),
            end_time=end_dt.strftime("%H:%M"),
            summary=summary,
        )
