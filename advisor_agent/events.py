"""Per-run step event recorder for flow tracing.

The interpreter emits an event at every step boundary (step start,
operation result, branch decision, rendered response, transition,
failure). The service attaches the log to the outcome in debug mode so
a flow author can see the exact path a message took.
"""

from __future__ import annotations

import logging
import time
from typing import TypedDict

log = logging.getLogger("advisor_agent.events")


class FlowEvent(TypedDict):
    type: str          # step_started | operation_completed | branch_evaluated | response_rendered | transition | step_failed
    timestamp: float
    flow_id: str
    step_id: str
    data: dict


class EventRecorder:
    """Collects the events of a single flow run."""

    def __init__(self, flow_id: str, max_events: int = 500) -> None:
        self._flow_id = flow_id
        self._max_events = max_events
        self._event_log: list[FlowEvent] = []
        self._dropped = 0

    def emit(self, event_type: str, step_id: str, data: dict) -> None:
        """Append an event, dropping the oldest once the log is full."""
        event: FlowEvent = {
            "type": event_type,
            "timestamp": time.time(),
            "flow_id": self._flow_id,
            "step_id": step_id,
            "data": data,
        }
        if len(self._event_log) >= self._max_events:
            self._event_log.pop(0)
            self._dropped += 1
        self._event_log.append(event)
        log.debug("Flow %s event %s at %s", self._flow_id, event_type, step_id)

    @property
    def event_log(self) -> list[FlowEvent]:
        """Full event history of the run."""
        return list(self._event_log)

    @property
    def dropped(self) -> int:
        return self._dropped
