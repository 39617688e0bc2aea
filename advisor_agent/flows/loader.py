"""Load JSONL flow definitions into FlowDef objects."""

from __future__ import annotations

import json
from pathlib import Path

from advisor_agent.flows.schema import FlowDef


def load_flow_jsonl(path: str | Path) -> FlowDef:
    """Load a single flow from a JSONL file.

    The file holds one JSON object; steps are nested inside the
    top-level ``steps`` dict.
    """
    path = Path(path)
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        return parse_flow(json.loads(line))

    raise ValueError(f"No flow found in {path}")


def load_flows_jsonl(path: str | Path) -> list[FlowDef]:
    """Load every flow in a JSONL file (one per line), keeping file order.

    File order is registry order, which decides which flow wins when
    several triggers match the same message.
    """
    path = Path(path)
    flows: list[FlowDef] = []
    seen: set[str] = set()
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        flow = parse_flow(json.loads(line))
        if flow.id in seen:
            raise ValueError(f"{path}:{lineno}: duplicate flow id {flow.id!r}")
        seen.add(flow.id)
        flows.append(flow)
    return flows


def parse_flow(data: dict) -> FlowDef:
    """Parse a raw dict into a FlowDef.

    Step ids default to their key in ``steps`` so authors can omit them.
    """
    raw_steps = data.get("steps", {})
    steps: dict[str, dict] = {}
    for step_id, step_data in raw_steps.items():
        if isinstance(step_data, dict):
            step_data = {"id": step_id, **step_data}
        steps[step_id] = step_data

    return FlowDef.model_validate({**data, "steps": steps})


def save_flow_jsonl(flow: FlowDef, path: str | Path) -> None:
    """Persist a flow to a JSONL file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = flow.model_dump(mode="json")
    path.write_text(json.dumps(data, ensure_ascii=False) + "\n", encoding="utf-8")
