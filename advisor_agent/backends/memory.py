"""In-memory advisor backend, seeded from a JSON file.

Used for local development, the demo flows and the tests. The JSON file
has two top-level lists, ``clients`` and ``meetings``, whose objects map
onto ClientRecord / MeetingRecord fields.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Iterable, Optional

from .base import AdvisorBackend, ClientRecord, MeetingRecord

logger = logging.getLogger(__name__)


class InMemoryBackend(AdvisorBackend):
    """AdvisorBackend over plain lists. Read-only after construction."""

    def __init__(
        self,
        clients: Iterable[ClientRecord] = (),
        meetings: Iterable[MeetingRecord] = (),
    ) -> None:
        self._clients = list(clients)
        self._meetings = sorted(meetings, key=lambda m: m.date_time)

    @classmethod
    def from_json(
        cls, path: str | Path, tz: Optional[tzinfo] = None
    ) -> "InMemoryBackend":
        """Build a backend from a seed file.

        Naive meeting times are interpreted in ``tz`` (UTC when omitted).
        """
        path = Path(path)
        raw = json.loads(path.read_text(encoding="utf-8"))

        clients = [ClientRecord(**item) for item in raw.get("clients", [])]
        meetings = []
        for item in raw.get("meetings", []):
            item = dict(item)
            start = datetime.fromisoformat(item["date_time"])
            if start.tzinfo is None:
                start = start.replace(tzinfo=tz or timezone.utc)
            item["date_time"] = start
            meetings.append(MeetingRecord(**item))

        logger.info(
            "Loaded %d clients and %d meetings from %s",
            len(clients), len(meetings), path,
        )
        return cls(clients=clients, meetings=meetings)

    # ------------------------------------------------------------------
    # AdvisorBackend interface
    # ------------------------------------------------------------------

    async def list_clients(
        self, advisor_id: int, include_archived: bool = False
    ) -> list[ClientRecord]:
        return [
            c for c in self._clients
            if c.advisor_id == advisor_id and (include_archived or not c.is_archived)
        ]

    async def get_client(
        self, advisor_id: int, client_id: int
    ) -> Optional[ClientRecord]:
        for client in self._clients:
            if client.id == client_id and client.advisor_id == advisor_id:
                return client
        return None

    async def list_meetings(
        self,
        advisor_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        client_id: Optional[int] = None,
    ) -> list[MeetingRecord]:
        results = []
        for meeting in self._meetings:
            if meeting.advisor_id != advisor_id:
                continue
            if client_id is not None and meeting.client_id != client_id:
                continue
            if start is not None and meeting.date_time < start:
                continue
            if end is not None and meeting.date_time >= end:
                continue
            results.append(meeting)
        return results

    async def get_meeting(
        self, advisor_id: int, meeting_id: int
    ) -> Optional[MeetingRecord]:
        for meeting in self._meetings:
            if meeting.id == meeting_id and meeting.advisor_id == advisor_id:
                return meeting
        return None
