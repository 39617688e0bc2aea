"""Abstract base class for advisor data backends.

Defines the read interface the capabilities need: client lookup and
meeting queries. Every call is scoped to one advisor so a caller never
sees another advisor's book.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class ClientRecord:
    """One client in an advisor's book."""

    id: int
    advisor_id: int
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    is_archived: bool = False
    is_onboarded: bool = False
    risk_profile: str = ""
    notes: str = ""
    assets: list[dict[str, Any]] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class MeetingRecord:
    """A scheduled meeting between an advisor and (optionally) a client."""

    id: int
    advisor_id: int
    subject: str
    date_time: datetime
    duration: int = 60  # minutes
    client_id: Optional[int] = None
    location: str = ""
    notes: str = ""


class AdvisorBackend(ABC):
    """Abstract advisor data store."""

    @abstractmethod
    async def list_clients(
        self, advisor_id: int, include_archived: bool = False
    ) -> list[ClientRecord]:
        """Return the advisor's clients.

        Args:
            advisor_id: The advisor whose book to read.
            include_archived: Whether archived clients are included.
        """

    @abstractmethod
    async def get_client(
        self, advisor_id: int, client_id: int
    ) -> Optional[ClientRecord]:
        """Return one client, or None if it does not belong to the advisor."""

    @abstractmethod
    async def list_meetings(
        self,
        advisor_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        client_id: Optional[int] = None,
    ) -> list[MeetingRecord]:
        """Return meetings ordered by start time.

        Args:
            advisor_id: The advisor whose calendar to read.
            start: Inclusive lower bound, or None for unbounded.
            end: Exclusive upper bound, or None for unbounded.
            client_id: Restrict to one client.
        """

    @abstractmethod
    async def get_meeting(
        self, advisor_id: int, meeting_id: int
    ) -> Optional[MeetingRecord]:
        """Return one meeting, or None if it does not belong to the advisor."""

    async def find_client_by_name(
        self, advisor_id: int, name: str, include_archived: bool = False
    ) -> Optional[ClientRecord]:
        """Find a client by full name, falling back to a last-name match.

        An exact (case-insensitive) full-name match wins, in either
        "first last" or "last first" order. Otherwise a unique match on
        any name word of at least three letters is accepted.
        """
        wanted = " ".join(name.lower().split())
        if not wanted:
            return None
        clients = await self.list_clients(advisor_id, include_archived=include_archived)

        for client in clients:
            first, last = client.first_name.lower(), client.last_name.lower()
            if wanted in (f"{first} {last}", f"{last} {first}"):
                return client

        words = [w for w in wanted.split() if len(w) >= 3]
        partial = [
            c for c in clients
            if any(w in (c.first_name.lower(), c.last_name.lower()) for w in words)
        ]
        if len(partial) == 1:
            return partial[0]
        return None
