"""Tests for the step interpreter — run flows against fake capabilities."""

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

from advisor_agent.capabilities.base import Capability
from advisor_agent.capabilities.dispatcher import CapabilityDispatcher
from advisor_agent.events import EventRecorder
from advisor_agent.flows.interpreter import FlowInterpreter
from advisor_agent.flows.loader import parse_flow
from advisor_agent.flows.schema import FlowDef
from advisor_agent.models.context import ExecutionContext


# ── Helpers ─────────────────────────────────────────────────────

class FakeCapability(Capability):
    """Capability that returns a canned result (or calls a function)."""

    def __init__(self, name: str, result: Any = None, fn=None) -> None:
        self._name = name
        self._result = result
        self._fn = fn
        self.calls: list[tuple[dict, Any]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return f"fake {self._name}"

    async def execute(self, args, caller_id):
        self.calls.append((args, caller_id))
        if self._fn is not None:
            return await self._fn(args, caller_id)
        return self._result


class RecordingDispatcher(CapabilityDispatcher):
    """Dispatcher that remembers the resolved args of every call."""

    def __init__(self, capabilities):
        super().__init__(capabilities)
        self.dispatched: list[tuple[str, dict, Any]] = []

    async def dispatch(self, operation, args, caller_id):
        self.dispatched.append((operation, args, caller_id))
        return await super().dispatch(operation, args, caller_id)


def _flow(steps: dict, initial: str = "start", **extra) -> FlowDef:
    return parse_flow({"id": "test_flow", "name": "Test", "initial_step": initial, "steps": steps, **extra})


def _ctx(**overrides) -> ExecutionContext:
    defaults = {"message": "hello", "caller_id": 7, "conversation_id": "c1", "flow_id": "test_flow"}
    defaults.update(overrides)
    return ExecutionContext(**defaults)


def _interpreter(*capabilities, max_steps: int = 100) -> FlowInterpreter:
    return FlowInterpreter(RecordingDispatcher(capabilities), max_steps=max_steps)


# ── Happy paths ────────────────────────────────────────────────

class TestOperationThenResponse:
    async def test_extracted_variable_renders_in_response(self):
        lookup = FakeCapability("lookup", {"success": True, "clientName": "Ada", "other": 1})
        flow = _flow({
            "start": {"type": "operation", "operation": "lookup",
                      "variables": ["clientName"], "on_success": "reply"},
            "reply": {"type": "response", "response": "Hello ${clientName}"},
        })
        ctx = _ctx()
        outcome = await _interpreter(lookup).run(flow, "start", ctx)

        assert outcome.success is True
        assert outcome.response == "Hello Ada"
        assert outcome.context.variables == {"clientName": "Ada"}
        assert outcome.context.result == {"success": True, "clientName": "Ada", "other": 1}
        assert outcome.steps_executed == 2

    async def test_args_are_substituted_and_caller_forwarded(self):
        lookup = FakeCapability("lookup", {"success": True})
        interp = _interpreter(lookup)
        flow = _flow({
            "start": {"type": "operation", "operation": "lookup",
                      "args": {"name": "${who.first}", "tags": ["${who.last}", 3]}},
        })
        ctx = _ctx(variables={"who": {"first": "Ada", "last": "Lovelace"}})
        outcome = await interp.run(flow, "start", ctx)

        assert outcome.success
        operation, args, caller = interp._dispatcher.dispatched[0]
        assert operation == "lookup"
        assert args == {"name": "Ada", "tags": ["Lovelace", 3]}
        assert caller == 7

    async def test_absent_variables_are_skipped(self):
        lookup = FakeCapability("lookup", {"success": True, "a": 1})
        flow = _flow({
            "start": {"type": "operation", "operation": "lookup", "variables": ["a", "b"]},
        })
        outcome = await _interpreter(lookup).run(flow, "start", _ctx())
        assert outcome.context.variables == {"a": 1}

    async def test_later_operation_overwrites_binding(self):
        first = FakeCapability("first", {"success": True, "name": "one"})
        second = FakeCapability("second", {"success": True, "name": "two"})
        flow = _flow({
            "start": {"type": "operation", "operation": "first", "variables": ["name"], "next_step": "again"},
            "again": {"type": "operation", "operation": "second", "variables": ["name"], "next_step": "reply"},
            "reply": {"type": "response", "response": "${name}"},
        })
        outcome = await _interpreter(first, second).run(flow, "start", _ctx())
        assert outcome.response == "two"

    async def test_on_success_preferred_over_next_step(self):
        op = FakeCapability("op", {"success": True})
        flow = _flow({
            "start": {"type": "operation", "operation": "op", "on_success": "a", "next_step": "b"},
            "a": {"type": "response", "response": "A"},
            "b": {"type": "response", "response": "B"},
        })
        outcome = await _interpreter(op).run(flow, "start", _ctx())
        assert outcome.response == "A"

    async def test_response_with_next_step_continues(self):
        flow = _flow({
            "start": {"type": "response", "response": "first", "next_step": "end"},
            "end": {"type": "response", "response": "second"},
        })
        outcome = await _interpreter().run(flow, "start", _ctx())
        assert outcome.success
        assert outcome.response == "second"

    async def test_run_without_response_succeeds_with_none(self):
        op = FakeCapability("op", {"success": True})
        flow = _flow({"start": {"type": "operation", "operation": "op"}})
        outcome = await _interpreter(op).run(flow, "start", _ctx())
        assert outcome.success
        assert outcome.response is None


# ── Failure routing ────────────────────────────────────────────

class TestOperationFailure:
    async def test_on_failure_branch_is_followed(self):
        op = FakeCapability("op", {"success": False, "error": "not found", "name": "x"})
        flow = _flow({
            "start": {"type": "operation", "operation": "op", "variables": ["name"],
                      "on_success": "ok", "on_failure": "sorry"},
            "ok": {"type": "response", "response": "ok"},
            "sorry": {"type": "response", "response": "Sorry, ${name}"},
        })
        outcome = await _interpreter(op).run(flow, "start", _ctx())
        assert outcome.success
        # Variables are only extracted from successful results.
        assert outcome.response == "Sorry, ${name}"
        assert outcome.context.result["error"] == "not found"

    async def test_failure_without_on_failure_does_not_follow_next_step(self):
        op = FakeCapability("op", {"success": False, "error": "boom"})
        flow = _flow({
            "start": {"type": "operation", "operation": "op", "next_step": "reply"},
            "reply": {"type": "response", "response": "should not render"},
        })
        outcome = await _interpreter(op).run(flow, "start", _ctx())
        assert outcome.success is False
        assert "boom" in outcome.error
        assert outcome.failed_step == "start"
        assert outcome.response is None
        assert outcome.steps_executed == 1

    async def test_unknown_operation_routes_through_on_failure(self):
        flow = _flow({
            "start": {"type": "operation", "operation": "does_not_exist", "on_failure": "sorry"},
            "sorry": {"type": "response", "response": "unavailable"},
        })
        outcome = await _interpreter().run(flow, "start", _ctx())
        assert outcome.success
        assert outcome.context.result == {
            "success": False,
            "error": "operation not implemented: does_not_exist",
        }
        assert outcome.response == "unavailable"

    async def test_provider_exception_becomes_failed_outcome(self):
        async def explode(args, caller_id):
            raise RuntimeError("database offline")

        op = FakeCapability("op", fn=explode)
        flow = _flow({
            "start": {"type": "response", "response": "partial", "next_step": "call"},
            "call": {"type": "operation", "operation": "op", "name": "Call Backend", "on_failure": "x"},
            "x": {"type": "response", "response": "never"},
        })
        outcome = await _interpreter(op).run(flow, "start", _ctx())
        assert outcome.success is False
        assert "Call Backend" in outcome.error
        assert "database offline" in outcome.error
        assert outcome.failed_step == "call"
        # Context is frozen at the point of failure.
        assert outcome.context.response == "partial"

    async def test_non_mapping_result_is_a_run_failure(self):
        op = FakeCapability("op", "not a dict")
        flow = _flow({"start": {"type": "operation", "operation": "op"}})
        outcome = await _interpreter(op).run(flow, "start", _ctx())
        assert outcome.success is False
        assert "expected a mapping" in outcome.error

    async def test_missing_success_flag_counts_as_failure(self):
        op = FakeCapability("op", {"data": 1})
        flow = _flow({
            "start": {"type": "operation", "operation": "op", "on_failure": "sorry"},
            "sorry": {"type": "response", "response": "failed"},
        })
        outcome = await _interpreter(op).run(flow, "start", _ctx())
        assert outcome.response == "failed"


# ── Branches ───────────────────────────────────────────────────

class TestBranch:
    def _branch_flow(self, value):
        return _flow({
            "start": {"type": "operation", "operation": "count", "variables": ["count"], "next_step": "check"},
            "check": {"type": "branch",
                      "condition": {"field": "variables.count", "operator": "gt", "value": value},
                      "on_true": "many", "on_false": "few"},
            "many": {"type": "response", "response": "many"},
            "few": {"type": "response", "response": "few"},
        })

    async def test_true_branch(self):
        op = FakeCapability("count", {"success": True, "count": 5})
        outcome = await _interpreter(op).run(self._branch_flow(2), "start", _ctx())
        assert outcome.response == "many"

    async def test_false_branch(self):
        op = FakeCapability("count", {"success": True, "count": 1})
        outcome = await _interpreter(op).run(self._branch_flow(2), "start", _ctx())
        assert outcome.response == "few"

    async def test_branch_can_inspect_last_result(self):
        flow = _flow({
            "start": {"type": "branch",
                      "condition": {"field": "message", "operator": "contains", "value": "urgent"},
                      "next_step": "fast", "on_false": "slow"},
            "fast": {"type": "response", "response": "fast"},
            "slow": {"type": "response", "response": "slow"},
        })
        outcome = await _interpreter().run(flow, "start", _ctx(message="this is urgent"))
        assert outcome.response == "fast"

    async def test_false_without_on_false_ends_successfully(self):
        flow = _flow({
            "start": {"type": "branch",
                      "condition": {"field": "variables.x", "operator": "exists"},
                      "on_true": "yes"},
            "yes": {"type": "response", "response": "yes"},
        })
        outcome = await _interpreter().run(flow, "start", _ctx())
        assert outcome.success
        assert outcome.response is None


# ── Malformed graphs ───────────────────────────────────────────

class TestMalformedFlows:
    async def test_missing_initial_step(self):
        flow = _flow({"other": {"type": "response", "response": "x"}}, initial="ghost")
        outcome = await _interpreter().run(flow, flow.initial_step, _ctx())
        assert outcome.success is False
        assert "ghost" in outcome.error
        assert outcome.steps_executed == 0

    async def test_empty_initial_step_is_not_found(self):
        flow = _flow({"a": {"type": "response", "response": "x"}}, initial="")
        outcome = await _interpreter().run(flow, flow.initial_step, _ctx())
        assert outcome.success is False
        assert outcome.error == "step not found: "
        assert outcome.steps_executed == 0
        assert outcome.response is None

    async def test_dangling_successor(self):
        flow = _flow({"start": {"type": "response", "response": "x", "next_step": "nowhere"}})
        outcome = await _interpreter().run(flow, "start", _ctx())
        assert outcome.success is False
        assert "nowhere" in outcome.error
        assert outcome.context.response == "x"

    async def test_unsupported_step_type(self):
        flow = _flow({"start": {"type": "response", "response": "x"}})
        foreign = SimpleNamespace(id="start", name="Webhook", type="webhook")
        flow = FlowDef.model_construct(**{**dict(flow), "steps": {"start": foreign}})
        outcome = await _interpreter().run(flow, "start", _ctx())
        assert outcome.success is False
        assert "unsupported step type: webhook" in outcome.error
        assert "in step Webhook" in outcome.error

    async def test_cycle_is_stopped_by_step_budget(self):
        flow = _flow({
            "start": {"type": "response", "response": "ping", "next_step": "loop"},
            "loop": {"type": "response", "response": "pong", "next_step": "start"},
        })
        outcome = await _interpreter(max_steps=10).run(flow, "start", _ctx())
        assert outcome.success is False
        assert "step budget of 10" in outcome.error
        assert outcome.steps_executed == 10

    def test_max_steps_must_be_positive(self):
        with pytest.raises(ValueError):
            _interpreter(max_steps=0)


# ── Events and isolation ───────────────────────────────────────

class TestEventsAndIsolation:
    async def test_recorder_collects_step_events(self):
        op = FakeCapability("op", {"success": True, "v": 1})
        flow = _flow({
            "start": {"type": "operation", "operation": "op", "variables": ["v"], "next_step": "reply"},
            "reply": {"type": "response", "response": "${v}"},
        })
        recorder = EventRecorder("test_flow")
        outcome = await _interpreter(op).run(flow, "start", _ctx(), recorder)

        types = [e["type"] for e in outcome.events]
        assert types == [
            "step_started", "operation_completed", "transition",
            "step_started", "response_rendered",
        ]
        assert outcome.events[1]["data"]["variables"] == ["v"]

    async def test_no_recorder_means_no_events(self):
        flow = _flow({"start": {"type": "response", "response": "x"}})
        outcome = await _interpreter().run(flow, "start", _ctx())
        assert outcome.events == []

    async def test_concurrent_runs_do_not_share_bindings(self):
        async def echo_caller(args, caller_id):
            await asyncio.sleep(0.01 if caller_id == 1 else 0)
            return {"success": True, "who": f"caller-{caller_id}"}

        op = FakeCapability("whoami", fn=echo_caller)
        interp = _interpreter(op)
        flow = _flow({
            "start": {"type": "operation", "operation": "whoami", "variables": ["who"], "next_step": "reply"},
            "reply": {"type": "response", "response": "${who}: ${message}"},
        })

        ctx1 = _ctx(caller_id=1, variables={"message": "one"})
        ctx2 = _ctx(caller_id=2, variables={"message": "two"})
        out1, out2 = await asyncio.gather(
            interp.run(flow, "start", ctx1),
            interp.run(flow, "start", ctx2),
        )
        assert out1.response == "caller-1: one"
        assert out2.response == "caller-2: two"
        assert out1.context is not out2.context
        assert out1.context.variables["who"] == "caller-1"
