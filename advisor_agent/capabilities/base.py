"""Base class for capabilities the flow interpreter can dispatch to.

A capability is a named async operation. It receives validated
arguments and the caller's advisor id, and returns a plain dict with at
least a boolean ``success`` key. Expected failures (client not found,
bad date) are reported as ``{"success": False, "error": ...}``;
exceptions are reserved for infrastructure faults.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class NoArgs(BaseModel):
    """Argument model for capabilities that take no arguments."""


class Capability(ABC):
    """One entry in the dispatcher's closed operation table."""

    #: Pydantic model used to validate the resolved step arguments.
    args_model: type[BaseModel] = NoArgs

    @property
    @abstractmethod
    def name(self) -> str:
        """Operation name flows refer to."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable summary for flow authors."""

    @property
    def parameters_schema(self) -> dict:
        return self.args_model.model_json_schema()

    @abstractmethod
    async def execute(self, args: Any, caller_id: int) -> dict[str, Any]:
        """Run the capability for ``caller_id`` with validated ``args``."""


def failure(error: str, **extra: Any) -> dict[str, Any]:
    """Build a provider-level failure result."""
    return {"success": False, "error": error, **extra}
