"""Pydantic models for advisor agent flows.

A flow is a directed graph of steps keyed by id. Three step kinds exist:
``operation`` (call a capability), ``branch`` (evaluate a condition) and
``response`` (render the user-facing text). Successor ids are plain
strings; ``None`` marks a terminal edge.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator

Operator = Literal["eq", "neq", "gt", "lt", "contains", "exists"]


class Condition(BaseModel):
    """Declarative predicate evaluated against the execution context."""

    model_config = {"frozen": True}

    field: str                              # dotted path, e.g. "result.count"
    operator: Operator
    value: Any = None


class _StepBase(BaseModel):
    model_config = {"frozen": True}

    id: str
    name: str = ""
    next_step: str | None = None            # generic successor

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            data = {**data, "name": data.get("id", "")}
        return data


class OperationStep(_StepBase):
    """Invoke a capability and route on its ``success`` flag."""

    type: Literal["operation"] = "operation"
    operation: str
    args: dict[str, Any] = {}               # values may contain ${...} templates
    variables: list[str] = []               # result fields copied into variables
    on_success: str | None = None
    on_failure: str | None = None


class BranchStep(_StepBase):
    """Route on a condition."""

    type: Literal["branch"] = "branch"
    condition: Condition
    on_true: str | None = None
    on_false: str | None = None


class ResponseStep(_StepBase):
    """Render the user-facing text; optionally continue."""

    type: Literal["response"] = "response"
    response: str = ""


StepDef = Annotated[
    Union[OperationStep, BranchStep, ResponseStep],
    Field(discriminator="type"),
]


class Trigger(BaseModel):
    model_config = {"frozen": True}

    type: Literal["keyword", "intent"] = "keyword"
    keywords: list[str] = []


class FlowDef(BaseModel):
    """A complete flow definition. Immutable once loaded."""

    model_config = {"frozen": True}

    id: str
    name: str = ""
    description: str = ""
    trigger: Trigger = Trigger()
    initial_step: str
    steps: dict[str, StepDef] = {}

    def successors(self, step_id: str) -> list[str]:
        """Return every successor id referenced by a step."""
        step = self.steps.get(step_id)
        if step is None:
            return []
        candidates = [step.next_step]
        if isinstance(step, OperationStep):
            candidates += [step.on_success, step.on_failure]
        elif isinstance(step, BranchStep):
            candidates += [step.on_true, step.on_false]
        return [c for c in candidates if c]
