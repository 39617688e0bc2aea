"""Step interpreter — walks a flow graph until a terminal step.

Each iteration resolves the current step, expands its templates with
the context's variables, executes it according to its kind and picks
the successor:

  operation  dispatch the capability, store the raw result, copy the
             listed variables on success; next is ``on_success`` (or
             ``next_step``) on success and ``on_failure`` on failure
  branch     evaluate the condition; next is ``on_true`` (or
             ``next_step``) or ``on_false``
  response   render the text into ``context.response``; next is
             ``next_step``

A failed operation without ``on_failure`` ends the run as a failure.
Every exception raised while executing a step is turned into a failed
FlowOutcome; nothing escapes ``run``. A step budget stops cyclic flows.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from advisor_agent.capabilities.dispatcher import CapabilityDispatcher
from advisor_agent.events import EventRecorder
from advisor_agent.flows.conditions import evaluate_condition
from advisor_agent.flows.schema import BranchStep, FlowDef, OperationStep, ResponseStep
from advisor_agent.flows.templating import substitute
from advisor_agent.models.context import ExecutionContext
from advisor_agent.models.outcome import FlowOutcome

log = logging.getLogger("advisor_agent.interpreter")

DEFAULT_MAX_STEPS = 100


class FlowError(Exception):
    """A run-level failure whose message is reported as-is."""


class UnsupportedStepError(FlowError):
    pass


class OperationFailedError(FlowError):
    pass


class FlowInterpreter:
    """Runs flows against a capability dispatcher.

    Holds no per-run state, so one interpreter can serve concurrent
    invocations; each run owns its ExecutionContext.
    """

    def __init__(
        self,
        dispatcher: CapabilityDispatcher,
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._dispatcher = dispatcher
        self._max_steps = max_steps

    async def run(
        self,
        flow: FlowDef,
        start_step_id: str,
        context: ExecutionContext,
        recorder: EventRecorder | None = None,
    ) -> FlowOutcome:
        """Execute ``flow`` from ``start_step_id`` and return the outcome."""
        step_id: str = start_step_id
        executed = 0

        while True:
            step = flow.steps.get(step_id)
            if step is None:
                log.error("Flow %s: step not found: %s", flow.id, step_id)
                return self._failure(context, f"step not found: {step_id}", step_id, executed, recorder)

            if executed >= self._max_steps:
                log.error("Flow %s: step budget of %d exhausted at %s", flow.id, self._max_steps, step_id)
                return self._failure(
                    context,
                    f"step budget of {self._max_steps} exhausted at step {step_id} "
                    "(the flow may contain a cycle)",
                    step_id, executed, recorder,
                )

            executed += 1
            step_type = getattr(step, "type", type(step).__name__)
            log.info("Flow %s: executing step %s (%s)", flow.id, step_id, step_type)
            self._emit(recorder, "step_started", step_id, {"type": step_type})

            try:
                next_id = await self._execute_step(step, context, recorder)
            except FlowError as exc:
                log.error("Flow %s: step %s failed: %s", flow.id, step_id, exc)
                return self._failure(context, str(exc), step_id, executed, recorder)
            except Exception as exc:
                name = getattr(step, "name", step_id)
                log.exception("Flow %s: error in step %s", flow.id, name)
                return self._failure(
                    context, f"error in step {name}: {exc}", step_id, executed, recorder,
                )

            if not next_id:
                break
            self._emit(recorder, "transition", step_id, {"from": step_id, "to": next_id})
            step_id = next_id

        log.info("Flow %s completed after %d steps", flow.id, executed)
        return FlowOutcome(
            success=True,
            context=context,
            response=context.response,
            steps_executed=executed,
            events=self._events(recorder),
        )

    # ── Step kinds ───────────────────────────────────────────────

    async def _execute_step(
        self, step: Any, context: ExecutionContext, recorder: EventRecorder | None,
    ) -> str | None:
        """Execute one step and return the successor id (None = stop)."""
        if isinstance(step, OperationStep):
            return await self._execute_operation(step, context, recorder)
        if isinstance(step, BranchStep):
            return self._execute_branch(step, context, recorder)
        if isinstance(step, ResponseStep):
            return self._execute_response(step, context, recorder)
        raise UnsupportedStepError(
            f"unsupported step type: {getattr(step, 'type', type(step).__name__)} "
            f"in step {getattr(step, 'name', None) or getattr(step, 'id', '?')}"
        )

    async def _execute_operation(
        self, step: OperationStep, context: ExecutionContext, recorder: EventRecorder | None,
    ) -> str | None:
        args = substitute(step.args, context.variables)
        result = await self._dispatcher.dispatch(step.operation, args, context.caller_id)
        if not isinstance(result, Mapping):
            raise FlowError(
                f"operation {step.operation} in step {step.name} returned "
                f"{type(result).__name__}, expected a mapping"
            )

        result = dict(result)
        context.result = result
        success = result.get("success") is True

        extracted = []
        if success:
            for var_name in step.variables:
                if var_name in result:
                    context.variables[var_name] = result[var_name]
                    extracted.append(var_name)

        self._emit(recorder, "operation_completed", step.id, {
            "operation": step.operation,
            "success": success,
            "variables": extracted,
            "error": result.get("error") if not success else None,
        })

        if success:
            return step.on_success or step.next_step
        if step.on_failure:
            return step.on_failure
        raise OperationFailedError(
            f"operation {step.operation} failed in step {step.name}: "
            f"{result.get('error', 'unknown error')}"
        )

    def _execute_branch(
        self, step: BranchStep, context: ExecutionContext, recorder: EventRecorder | None,
    ) -> str | None:
        outcome = evaluate_condition(step.condition, context)
        self._emit(recorder, "branch_evaluated", step.id, {
            "field": step.condition.field,
            "operator": step.condition.operator,
            "result": outcome,
        })
        if outcome:
            return step.on_true or step.next_step
        return step.on_false

    def _execute_response(
        self, step: ResponseStep, context: ExecutionContext, recorder: EventRecorder | None,
    ) -> str | None:
        if step.response:
            context.response = substitute(step.response, context.variables)
        self._emit(recorder, "response_rendered", step.id, {
            "length": len(context.response or ""),
        })
        return step.next_step

    # ── Helpers ──────────────────────────────────────────────────

    @staticmethod
    def _emit(recorder: EventRecorder | None, event_type: str, step_id: str, data: dict) -> None:
        if recorder is not None:
            recorder.emit(event_type, step_id, data)

    @staticmethod
    def _events(recorder: EventRecorder | None) -> list[dict[str, Any]]:
        return [dict(e) for e in recorder.event_log] if recorder is not None else []

    def _failure(
        self,
        context: ExecutionContext,
        error: str,
        step_id: str,
        executed: int,
        recorder: EventRecorder | None,
    ) -> FlowOutcome:
        self._emit(recorder, "step_failed", step_id, {"error": error})
        return FlowOutcome(
            success=False,
            context=context,
            response=context.response,
            error=error,
            failed_step=step_id,
            steps_executed=executed,
            events=self._events(recorder),
        )
