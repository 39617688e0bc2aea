"""Read-only, ordered table of the flows available to the entry point."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Iterator
from pathlib import Path
from types import MappingProxyType

from advisor_agent.flows.loader import load_flows_jsonl
from advisor_agent.flows.schema import FlowDef
from advisor_agent.flows.validation import validate_flow

log = logging.getLogger("advisor_agent.registry")


class FlowRegistry:
    """Flows keyed by id, iterated in registration order.

    Built once before any invocation and never mutated afterwards, so
    concurrent runs can read it without locking.
    """

    def __init__(
        self,
        flows: Iterable[FlowDef] = (),
        operations: Collection[str] | None = None,
    ) -> None:
        table: dict[str, FlowDef] = {}
        for flow in flows:
            if flow.id in table:
                raise ValueError(f"duplicate flow id: {flow.id}")
            for problem in validate_flow(flow, operations):
                log.warning("Flow %s: %s", flow.id, problem)
            table[flow.id] = flow
        self._flows = MappingProxyType(table)

    @classmethod
    def from_jsonl(
        cls, path: str | Path, operations: Collection[str] | None = None,
    ) -> "FlowRegistry":
        """Load every flow in a JSONL file; a missing file yields an empty registry."""
        path = Path(path)
        if not path.is_file():
            log.warning("Flow file %s not found — registry is empty", path)
            return cls([], operations)
        flows = load_flows_jsonl(path)
        log.info("Loaded %d flows from %s", len(flows), path)
        return cls(flows, operations)

    def get(self, flow_id: str) -> FlowDef | None:
        return self._flows.get(flow_id)

    def __contains__(self, flow_id: object) -> bool:
        return flow_id in self._flows

    def __iter__(self) -> Iterator[FlowDef]:
        return iter(self._flows.values())

    def __len__(self) -> int:
        return len(self._flows)

    @property
    def ids(self) -> list[str]:
        return list(self._flows)
