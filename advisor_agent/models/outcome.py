"""Pydantic models for flow outcomes and invocation requests/responses."""

from typing import Any, Optional

from pydantic import BaseModel

from .context import ExecutionContext


class FlowOutcome(BaseModel):
    """Result of one interpreter run.

    On failure ``context`` is frozen at the step that failed.
    """

    success: bool
    context: ExecutionContext
    response: Optional[str] = None
    error: Optional[str] = None
    failed_step: Optional[str] = None
    steps_executed: int = 0
    events: list[dict[str, Any]] = []


class FlowRequest(BaseModel):
    """Body of an invocation coming from the host."""

    message: str
    conversation_id: str = ""
    flow_id: Optional[str] = None


class FlowResponse(BaseModel):
    """What the entry point hands back to the host."""

    success: bool
    flow_id: Optional[str] = None
    flow_name: Optional[str] = None
    result: Optional[FlowOutcome] = None
    error: Optional[str] = None
