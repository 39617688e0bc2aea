"""Client lookup capabilities.

``extract_client_name`` pulls a client name out of the triggering
message, ``get_client_context`` loads the client's profile and
``search_clients`` runs a free-text search over the advisor's book.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel

from advisor_agent.backends.base import AdvisorBackend, ClientRecord

from .base import Capability, failure

logger = logging.getLogger(__name__)

# Two or three consecutive capitalized words ("Mario Rossi", "Anna De Luca").
_CAPITALIZED_NAME = re.compile(r"\b([A-Z][a-zà-ÿ']+(?:\s+[A-Z][a-zà-ÿ']+){1,2})\b")


def client_summary(client: ClientRecord) -> dict[str, Any]:
    return {
        "id": client.id,
        "name": client.full_name,
        "email": client.email,
        "is_archived": client.is_archived,
    }


def client_profile(client: ClientRecord) -> dict[str, Any]:
    total_assets = sum(float(a.get("value", 0) or 0) for a in client.assets)
    return {
        "id": client.id,
        "first_name": client.first_name,
        "last_name": client.last_name,
        "name": client.full_name,
        "email": client.email,
        "phone": client.phone,
        "is_archived": client.is_archived,
        "is_onboarded": client.is_onboarded,
        "risk_profile": client.risk_profile,
        "notes": client.notes,
        "assets": list(client.assets),
        "total_assets": total_assets,
    }


class ExtractClientNameArgs(BaseModel):
    message: str


class ExtractClientNameCapability(Capability):
    """Find which of the advisor's clients a message talks about."""

    args_model = ExtractClientNameArgs

    def __init__(self, backend: AdvisorBackend) -> None:
        self._backend = backend

    @property
    def name(self) -> str:
        return "extract_client_name"

    @property
    def description(self) -> str:
        return (
            "Extract a client name from a free-text message. Known clients "
            "of the caller are matched first, then capitalized name pairs."
        )

    async def execute(self, args: ExtractClientNameArgs, caller_id: int) -> dict[str, Any]:
        text = " ".join(args.message.split())
        lowered = text.lower()

        clients = await self._backend.list_clients(caller_id, include_archived=True)
        # Longest names first so "Anna De Luca" wins over "Luca".
        for client in sorted(clients, key=lambda c: len(c.full_name), reverse=True):
            first, last = client.first_name.lower(), client.last_name.lower()
            if f"{first} {last}" in lowered or f"{last} {first}" in lowered:
                return {"success": True, "client_name": client.full_name, "client_id": client.id}

        match = _CAPITALIZED_NAME.search(text)
        if match:
            return {"success": True, "client_name": match.group(1)}

        return failure("no client name found in message")


class ClientContextArgs(BaseModel):
    client_name: str
    query: str = ""


class GetClientContextCapability(Capability):
    """Load a client's profile by name."""

    args_model = ClientContextArgs

    def __init__(self, backend: AdvisorBackend) -> None:
        self._backend = backend

    @property
    def name(self) -> str:
        return "get_client_context"

    @property
    def description(self) -> str:
        return (
            "Return the full profile of one of the caller's clients, looked "
            "up by name. Fails if the name matches no client or several."
        )

    async def execute(self, args: ClientContextArgs, caller_id: int) -> dict[str, Any]:
        if not args.client_name.strip():
            return failure("client name is required")

        client = await self._backend.find_client_by_name(
            caller_id, args.client_name, include_archived=True,
        )
        if client is None:
            logger.debug("Client %r not found for advisor %s", args.client_name, caller_id)
            return failure(f'client "{args.client_name}" not found')

        return {
            "success": True,
            "client_id": client.id,
            "client_info": client_profile(client),
            "query": args.query,
        }


class SearchClientsArgs(BaseModel):
    query: str
    limit: int = 10
    include_archived: bool = False


class SearchClientsCapability(Capability):
    """Search the advisor's clients by name or email."""

    args_model = SearchClientsArgs

    def __init__(self, backend: AdvisorBackend) -> None:
        self._backend = backend

    @property
    def name(self) -> str:
        return "search_clients"

    @property
    def description(self) -> str:
        return "Search the caller's clients by name, email or name fragments."

    async def execute(self, args: SearchClientsArgs, caller_id: int) -> dict[str, Any]:
        query = args.query.lower().strip()
        words = [w for w in query.split() if len(w) >= 3]

        clients = await self._backend.list_clients(
            caller_id, include_archived=args.include_archived,
        )

        matched = []
        for client in clients:
            first, last = client.first_name.lower(), client.last_name.lower()
            if query and (query in client.email.lower() or query in f"{first} {last}"):
                matched.append(client)
            elif any(w in first or w in last for w in words):
                matched.append(client)

        found = [client_summary(c) for c in matched[: max(args.limit, 0)]]
        if found:
            noun = "client" if len(found) == 1 else "clients"
            message = f"Found {len(found)} {noun} matching your search."
        else:
            message = "No clients match your search."

        return {"success": True, "clients": found, "count": len(found), "message": message}
