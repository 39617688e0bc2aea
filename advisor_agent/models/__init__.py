"""Data models for the advisor agent."""

from .context import ExecutionContext
from .outcome import FlowOutcome, FlowRequest, FlowResponse

__all__ = ["ExecutionContext", "FlowOutcome", "FlowRequest", "FlowResponse"]
