"""Flow invocation entry point.

The host hands over a message, an authenticated caller id and a
conversation id (plus, optionally, an explicit flow id). The service
picks a flow (explicit id first, keyword matching otherwise), builds a
fresh ExecutionContext and runs the interpreter. Concurrent invocations
share only the read-only registry and dispatcher.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

from advisor_agent.backends.memory import InMemoryBackend
from advisor_agent.capabilities.dispatcher import CapabilityDispatcher, build_dispatcher
from advisor_agent.config import Settings, settings as default_settings
from advisor_agent.events import EventRecorder
from advisor_agent.flows.interpreter import FlowInterpreter
from advisor_agent.flows.matcher import match_flow
from advisor_agent.flows.registry import FlowRegistry
from advisor_agent.flows.schema import FlowDef
from advisor_agent.models.context import ExecutionContext
from advisor_agent.models.outcome import FlowResponse

log = logging.getLogger("advisor_agent.service")

NO_FLOW_ERROR = "no flow found for this message"


class FlowService:
    """Resolves and runs flows for incoming messages."""

    def __init__(
        self,
        registry: FlowRegistry,
        dispatcher: CapabilityDispatcher,
        max_steps: int = 100,
        timeout_seconds: Optional[float] = None,
        record_events: bool = False,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._interpreter = FlowInterpreter(dispatcher, max_steps=max_steps)
        self._timeout = timeout_seconds
        self._record_events = record_events

    @property
    def registry(self) -> FlowRegistry:
        return self._registry

    @property
    def dispatcher(self) -> CapabilityDispatcher:
        return self._dispatcher

    def resolve_flow(self, message: str, flow_id: Optional[str] = None) -> FlowDef | None:
        """Explicit id when registered, keyword matching otherwise."""
        if flow_id:
            flow = self._registry.get(flow_id)
            if flow is not None:
                return flow
            log.info("Unknown flow id %r — falling back to keyword matching", flow_id)
        return match_flow(message, self._registry)

    async def handle(
        self,
        message: str,
        caller_id: Any,
        conversation_id: str = "",
        flow_id: Optional[str] = None,
    ) -> FlowResponse:
        """Run the flow that handles ``message`` for ``caller_id``."""
        flow = self.resolve_flow(message, flow_id)
        if flow is None:
            log.info("No flow for message from caller %s", caller_id)
            return FlowResponse(success=False, error=NO_FLOW_ERROR)

        context = ExecutionContext(
            message=message,
            caller_id=caller_id,
            conversation_id=conversation_id,
            flow_id=flow.id,
            flow_name=flow.name,
            variables={"message": message, "conversation_id": conversation_id},
        )
        recorder = EventRecorder(flow.id) if self._record_events else None

        log.info("Running flow %s for caller %s", flow.id, caller_id)
        run = self._interpreter.run(flow, flow.initial_step, context, recorder)
        try:
            if self._timeout is not None:
                outcome = await asyncio.wait_for(run, timeout=self._timeout)
            else:
                outcome = await run
        except asyncio.TimeoutError:
            log.error("Flow %s timed out after %.1fs", flow.id, self._timeout)
            return FlowResponse(
                success=False,
                flow_id=flow.id,
                flow_name=flow.name,
                error=f"flow {flow.id} timed out after {self._timeout:g}s",
            )

        return FlowResponse(
            success=outcome.success,
            flow_id=flow.id,
            flow_name=flow.name,
            result=outcome,
            error=outcome.error,
        )


def create_service(config: Settings | None = None) -> FlowService:
    """Build a FlowService from settings: seed-data backend, default capabilities, JSONL flows."""
    config = config or default_settings
    tz = ZoneInfo(config.timezone)
    if Path(config.sample_data_path).is_file():
        backend = InMemoryBackend.from_json(config.sample_data_path, tz=tz)
    else:
        log.warning("Seed data %s not found — starting with an empty backend", config.sample_data_path)
        backend = InMemoryBackend()
    dispatcher = build_dispatcher(backend, config, tz=tz)
    registry = FlowRegistry.from_jsonl(config.flows_path, operations=dispatcher.operations)
    return FlowService(
        registry,
        dispatcher,
        max_steps=config.max_steps,
        timeout_seconds=config.flow_timeout_seconds,
        record_events=config.debug,
    )
