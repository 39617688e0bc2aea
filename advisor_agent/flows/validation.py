"""Authoring checks for flow definitions.

These checks are advisory: the registry logs the problems at load time
but still registers the flow. A dangling successor id is only fatal when
a run actually reaches it.
"""

from __future__ import annotations

from collections.abc import Collection

from advisor_agent.flows.schema import FlowDef, OperationStep


def validate_flow(flow: FlowDef, operations: Collection[str] | None = None) -> list[str]:
    """Return human-readable problems found in ``flow``.

    Args:
        flow: The flow to check.
        operations: Known operation names. When given, operation steps
            naming anything else are reported.
    """
    problems: list[str] = []

    if flow.initial_step not in flow.steps:
        problems.append(f"initial step {flow.initial_step!r} does not exist")

    for step_id, step in flow.steps.items():
        if step.id != step_id:
            problems.append(f"step key {step_id!r} holds a step with id {step.id!r}")
        for target in flow.successors(step_id):
            if target not in flow.steps:
                problems.append(f"step {step_id!r} points to missing step {target!r}")
        if (
            operations is not None
            and isinstance(step, OperationStep)
            and step.operation not in operations
        ):
            problems.append(f"step {step_id!r} uses unknown operation {step.operation!r}")

    if flow.trigger.type == "keyword" and not flow.trigger.keywords:
        problems.append("keyword trigger has no keywords")

    return problems
