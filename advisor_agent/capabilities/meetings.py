"""Meeting capabilities: calendar queries and meeting dialog preparation.

The ``prepare_*`` capabilities never write anything. They return the
data the host needs to show a confirmation dialog, so the advisor always
has the last word before a meeting is created or changed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from typing import Any, Callable, Optional

from pydantic import BaseModel

from advisor_agent.backends.base import AdvisorBackend, ClientRecord, MeetingRecord

from .base import Capability, failure

logger = logging.getLogger(__name__)

_RANGE_LABELS = {
    "today": "for today",
    "tomorrow": "for tomorrow",
    "week": "in the next 7 days",
    "month": "in the next 30 days",
    "future": "upcoming",
    "past": "in the past",
    "all": "in total",
}


def format_date(dt: datetime) -> str:
    return dt.strftime("%d/%m/%Y")


def format_time(dt: datetime) -> str:
    return dt.strftime("%H:%M")


def parse_local_datetime(value: str, tz: tzinfo) -> datetime:
    """Parse an ISO date/time; naive values are taken as local time."""
    dt = datetime.fromisoformat(value.strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt


class _MeetingCapability(Capability):
    """Shared plumbing: backend, local timezone and clock."""

    def __init__(
        self,
        backend: AdvisorBackend,
        tz: tzinfo,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._backend = backend
        self._tz = tz
        self._clock = clock or (lambda: datetime.now(tz=self._tz))

    def _now(self) -> datetime:
        return self._clock().astimezone(self._tz)

    async def _meeting_to_dict(self, meeting: MeetingRecord, caller_id: int) -> dict[str, Any]:
        local = meeting.date_time.astimezone(self._tz)
        client_info = None
        if meeting.client_id is not None:
            client = await self._backend.get_client(caller_id, meeting.client_id)
            if client is not None:
                client_info = {"id": client.id, "name": client.full_name, "email": client.email}

        return {
            "id": meeting.id,
            "subject": meeting.subject,
            "date_time": local.isoformat(),
            "formatted_date": format_date(local),
            "formatted_time": format_time(local),
            "duration": meeting.duration,
            "location": meeting.location,
            "notes": meeting.notes,
            "client": client_info,
        }

    @staticmethod
    def _summary(items: list[dict[str, Any]]) -> str:
        lines = []
        for item in items:
            line = f"- {item['formatted_date']} {item['formatted_time']} {item['subject']}"
            if item["client"]:
                line += f" ({item['client']['name']})"
            if item["location"]:
                line += f" @ {item['location']}"
            lines.append(line)
        return "\n".join(lines)

    @staticmethod
    def _count_message(count: int, label: str) -> str:
        if count == 0:
            return f"No meetings found {label}."
        noun = "meeting" if count == 1 else "meetings"
        return f"Found {count} {noun} {label}."


class MeetingsByDateRangeArgs(BaseModel):
    date_range: str = "today"


class GetMeetingsByDateRangeCapability(_MeetingCapability):
    """List meetings in a named or explicit date range."""

    args_model = MeetingsByDateRangeArgs

    @property
    def name(self) -> str:
        return "get_meetings_by_date_range"

    @property
    def description(self) -> str:
        return (
            "List the caller's meetings for 'today', 'tomorrow', 'week', "
            "'month', 'future', 'past', 'all', a single YYYY-MM-DD day or a "
            "YYYY-MM-DD/YYYY-MM-DD range (end day inclusive)."
        )

    def _resolve_range(
        self, date_range: str,
    ) -> tuple[Optional[datetime], Optional[datetime], str]:
        """Map a range expression to ``[start, end)`` plus a message label.

        Raises ValueError for unrecognized expressions.
        """
        key = date_range.strip().lower()
        now = self._now()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

        if key == "today":
            return midnight, midnight + timedelta(days=1), _RANGE_LABELS[key]
        if key == "tomorrow":
            return midnight + timedelta(days=1), midnight + timedelta(days=2), _RANGE_LABELS[key]
        if key == "week":
            return midnight, midnight + timedelta(days=7), _RANGE_LABELS[key]
        if key == "month":
            return midnight, midnight + timedelta(days=30), _RANGE_LABELS[key]
        if key == "future":
            return now, None, _RANGE_LABELS[key]
        if key == "past":
            return None, now, _RANGE_LABELS[key]
        if key == "all":
            return None, None, _RANGE_LABELS[key]

        start_str, _, end_str = key.partition("/")
        start = datetime.strptime(start_str.strip(), "%Y-%m-%d").replace(tzinfo=self._tz)
        end_day = (
            datetime.strptime(end_str.strip(), "%Y-%m-%d").replace(tzinfo=self._tz)
            if end_str else start
        )
        if end_day < start:
            raise ValueError(f"range end {end_str} is before start {start_str}")
        label = f"on {format_date(start)}" if not end_str else (
            f"between {format_date(start)} and {format_date(end_day)}"
        )
        return start, end_day + timedelta(days=1), label

    async def execute(self, args: MeetingsByDateRangeArgs, caller_id: int) -> dict[str, Any]:
        try:
            start, end, label = self._resolve_range(args.date_range)
        except ValueError:
            return failure(
                f"unrecognized date range: {args.date_range!r}. "
                "Use a keyword or YYYY-MM-DD[/YYYY-MM-DD]."
            )

        meetings = await self._backend.list_meetings(caller_id, start=start, end=end)
        items = [await self._meeting_to_dict(m, caller_id) for m in meetings]
        return {
            "success": True,
            "meetings": items,
            "count": len(items),
            "message": self._count_message(len(items), label),
            "summary": self._summary(items),
        }


class MeetingsByClientArgs(BaseModel):
    client_name: str


class GetMeetingsByClientNameCapability(_MeetingCapability):
    """List every meeting with one client."""

    args_model = MeetingsByClientArgs

    @property
    def name(self) -> str:
        return "get_meetings_by_client_name"

    @property
    def description(self) -> str:
        return "List the caller's meetings with a client, looked up by name."

    async def execute(self, args: MeetingsByClientArgs, caller_id: int) -> dict[str, Any]:
        client = await self._backend.find_client_by_name(
            caller_id, args.client_name, include_archived=True,
        )
        if client is None:
            return failure(f'client "{args.client_name}" not found')

        meetings = await self._backend.list_meetings(caller_id, client_id=client.id)
        items = [await self._meeting_to_dict(m, caller_id) for m in meetings]
        return {
            "success": True,
            "client_id": client.id,
            "client_name": client.full_name,
            "meetings": items,
            "count": len(items),
            "message": self._count_message(len(items), f"with {client.full_name}"),
            "summary": self._summary(items),
        }


class PrepareMeetingArgs(BaseModel):
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    subject: str = ""
    date_time: str = ""
    duration: int = 60
    location: str = ""
    notes: str = ""


class PrepareMeetingDataCapability(_MeetingCapability):
    """Validate a new meeting and return the data for the confirmation dialog."""

    args_model = PrepareMeetingArgs

    @property
    def name(self) -> str:
        return "prepare_meeting_data"

    @property
    def description(self) -> str:
        return (
            "Prepare a new meeting with a client for confirmation. Requires a "
            "client (id or name), a subject and an ISO date/time."
        )

    async def _resolve_client(
        self, args: PrepareMeetingArgs, caller_id: int,
    ) -> Optional[ClientRecord]:
        if args.client_id is not None:
            return await self._backend.get_client(caller_id, args.client_id)
        if args.client_name:
            return await self._backend.find_client_by_name(caller_id, args.client_name)
        return None

    async def execute(self, args: PrepareMeetingArgs, caller_id: int) -> dict[str, Any]:
        missing = [
            name for name, value in (
                ("client", args.client_id or args.client_name),
                ("subject", args.subject.strip()),
                ("date_time", args.date_time.strip()),
            ) if not value
        ]
        if missing:
            return failure("incomplete meeting details", required_params=missing)

        if args.duration <= 0:
            return failure(f"invalid duration: {args.duration}")

        try:
            start = parse_local_datetime(args.date_time, self._tz)
        except ValueError:
            return failure(f"invalid date/time: {args.date_time!r}")

        client = await self._resolve_client(args, caller_id)
        if client is None:
            return failure("client not found")

        local = start.astimezone(self._tz)
        meeting_data = {
            "client_id": client.id,
            "client_name": client.full_name,
            "client_email": client.email,
            "subject": args.subject.strip(),
            "date_time": local.isoformat(),
            "formatted_date": format_date(local),
            "formatted_time": format_time(local),
            "duration": args.duration,
            "location": args.location,
            "notes": args.notes,
        }
        return {
            "success": True,
            "meeting_data": meeting_data,
            "show_dialog": True,
            "dialog_type": "create_meeting",
            "message": (
                f"Preparing a meeting with {client.full_name} on "
                f"{meeting_data['formatted_date']} at {meeting_data['formatted_time']}."
            ),
        }


class PrepareEditMeetingArgs(BaseModel):
    meeting_id: int
    subject: Optional[str] = None
    date_time: Optional[str] = None
    duration: Optional[int] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class PrepareEditMeetingCapability(_MeetingCapability):
    """Merge requested changes into an existing meeting for confirmation."""

    args_model = PrepareEditMeetingArgs

    @property
    def name(self) -> str:
        return "prepare_edit_meeting"

    @property
    def description(self) -> str:
        return (
            "Prepare changes to one of the caller's meetings for confirmation. "
            "Fields left out keep their current value."
        )

    async def execute(self, args: PrepareEditMeetingArgs, caller_id: int) -> dict[str, Any]:
        meeting = await self._backend.get_meeting(caller_id, args.meeting_id)
        if meeting is None:
            return failure(f"meeting {args.meeting_id} not found")

        current = await self._meeting_to_dict(meeting, caller_id)
        updated = dict(current)

        if args.date_time:
            try:
                start = parse_local_datetime(args.date_time, self._tz).astimezone(self._tz)
            except ValueError:
                return failure(f"invalid date/time: {args.date_time!r}")
            updated["date_time"] = start.isoformat()
            updated["formatted_date"] = format_date(start)
            updated["formatted_time"] = format_time(start)
        if args.duration is not None:
            if args.duration <= 0:
                return failure(f"invalid duration: {args.duration}")
            updated["duration"] = args.duration
        for key in ("subject", "location", "notes"):
            value = getattr(args, key)
            if value is not None:
                updated[key] = value

        changed = sorted(k for k in updated if updated[k] != current[k])
        return {
            "success": True,
            "meeting_id": meeting.id,
            "meeting_data": updated,
            "original": current,
            "changed_fields": changed,
            "show_dialog": True,
            "dialog_type": "edit_meeting",
            "message": (
                f"Preparing changes to \"{meeting.subject}\": {', '.join(changed)}."
                if changed else f"No changes requested for \"{meeting.subject}\"."
            ),
        }
