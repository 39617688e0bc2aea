"""Capability dispatcher — the closed operation table used by flows.

Operation steps name a capability by string. The dispatcher maps that
name onto one of a fixed set of Capability objects, validates the
resolved arguments against the capability's model and forwards the
call. Unknown names and invalid arguments come back as ordinary
``success: False`` results so flows can route them through
``on_failure``; only exceptions raised by the capability itself escape.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from types import MappingProxyType
from typing import Any, Iterable
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from advisor_agent.backends.base import AdvisorBackend
from advisor_agent.config import Settings, settings as default_settings

from .base import Capability, failure
from .clients import (
    ExtractClientNameCapability,
    GetClientContextCapability,
    SearchClientsCapability,
)
from .documentation import GetSiteDocumentationCapability
from .meetings import (
    GetMeetingsByClientNameCapability,
    GetMeetingsByDateRangeCapability,
    PrepareEditMeetingCapability,
    PrepareMeetingDataCapability,
)
from .news import GetFinancialNewsCapability

log = logging.getLogger("advisor_agent.dispatcher")


class CapabilityDispatcher:
    """Read-only mapping from operation name to capability."""

    def __init__(self, capabilities: Iterable[Capability]) -> None:
        table: dict[str, Capability] = {}
        for capability in capabilities:
            if capability.name in table:
                raise ValueError(f"duplicate capability name: {capability.name}")
            table[capability.name] = capability
        self._capabilities = MappingProxyType(table)

    @property
    def operations(self) -> frozenset[str]:
        """Names flows may use in operation steps."""
        return frozenset(self._capabilities)

    def get(self, operation: str) -> Capability | None:
        return self._capabilities.get(operation)

    def describe(self) -> list[dict[str, Any]]:
        """Name, description and argument schema of every capability."""
        return [
            {
                "name": cap.name,
                "description": cap.description,
                "parameters": cap.parameters_schema,
            }
            for cap in self._capabilities.values()
        ]

    async def dispatch(
        self, operation: str, args: dict[str, Any], caller_id: Any,
    ) -> dict[str, Any]:
        """Run ``operation`` for ``caller_id`` and return its result unchanged."""
        capability = self._capabilities.get(operation)
        if capability is None:
            log.warning("Operation not implemented: %s", operation)
            return failure(f"operation not implemented: {operation}")

        try:
            parsed = capability.args_model.model_validate(args)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'args'}: {err['msg']}"
                for err in exc.errors()
            )
            log.info("Invalid arguments for %s: %s", operation, problems)
            return failure(f"invalid arguments for {operation}: {problems}")

        log.info("Dispatching %s for caller %s", operation, caller_id)
        return await capability.execute(parsed, caller_id)


def build_dispatcher(
    backend: AdvisorBackend,
    config: Settings | None = None,
    tz: tzinfo | None = None,
) -> CapabilityDispatcher:
    """Build the dispatcher with the standard advisor capabilities."""
    config = config or default_settings
    tz = tz or ZoneInfo(config.timezone)
    return CapabilityDispatcher([
        ExtractClientNameCapability(backend),
        GetClientContextCapability(backend),
        SearchClientsCapability(backend),
        GetSiteDocumentationCapability(),
        GetFinancialNewsCapability(
            base_url=config.news_service_url,
            timeout=config.news_timeout_seconds,
        ),
        GetMeetingsByDateRangeCapability(backend, tz=tz),
        GetMeetingsByClientNameCapability(backend, tz=tz),
        PrepareMeetingDataCapability(backend, tz=tz),
        PrepareEditMeetingCapability(backend, tz=tz),
    ])
