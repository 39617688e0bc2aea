"""Shared fixtures: a seeded in-memory backend and a fixed clock."""

from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from advisor_agent.backends.memory import InMemoryBackend

ROOT = Path(__file__).resolve().parent.parent
SAMPLE_DATA = ROOT / "data" / "sample_advisor_data.json"
FLOWS_PATH = ROOT / "data" / "flows" / "advisor_flows.jsonl"

ROME = ZoneInfo("Europe/Rome")

# 2026-03-10 08:00 local — the seed data has two meetings later that day.
FIXED_NOW = datetime(2026, 3, 10, 8, 0, tzinfo=ROME)


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend.from_json(SAMPLE_DATA, tz=ROME)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
