"""Keyword trigger matching: pick the flow that handles a message."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from advisor_agent.flows.schema import FlowDef

log = logging.getLogger("advisor_agent.matcher")


def match_flow(message: str, flows: Iterable[FlowDef]) -> FlowDef | None:
    """Return the first flow whose keyword trigger occurs in ``message``.

    Matching is a case-insensitive substring test. Flows are scanned in
    registry order and the first hit wins; there is no scoring. Flows
    with an ``intent`` trigger are skipped.
    """
    text = message.lower()
    for flow in flows:
        if flow.trigger.type != "keyword":
            continue
        for keyword in flow.trigger.keywords:
            if keyword and keyword.lower() in text:
                log.info("Message matched flow %s on keyword %r", flow.id, keyword)
                return flow
    return None
