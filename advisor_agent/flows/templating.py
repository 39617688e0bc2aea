"""``${path}`` variable substitution for flow arguments and responses.

Placeholders are replaced with the value found at a dotted path inside
the variable map. Unresolved placeholders are left in place verbatim so
a missing binding shows up in the output instead of silently vanishing.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def resolve_path(root: Any, path: str) -> Any:
    """Walk a dotted path through mappings, sequences and pydantic models.

    Returns ``MISSING`` when a segment does not exist or when an
    intermediate value is ``None``.
    """
    current = root
    for part in path.strip().split("."):
        if current is None or current is MISSING:
            return MISSING
        if isinstance(current, Mapping):
            current = current.get(part, MISSING)
        elif isinstance(current, BaseModel):
            current = getattr(current, part, MISSING) if part in type(current).model_fields else MISSING
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                return MISSING
        else:
            return MISSING
    return current


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def substitute(template: Any, variables: Mapping[str, Any]) -> Any:
    """Expand placeholders in ``template``, keeping its shape.

    Strings are expanded, lists element-wise, dicts value-wise; anything
    else is returned unchanged.
    """
    if isinstance(template, str):
        def _replace(match: re.Match) -> str:
            value = resolve_path(variables, match.group(1))
            if value is MISSING or value is None:
                return match.group(0)
            return _render(value)

        return _PLACEHOLDER.sub(_replace, template)

    if isinstance(template, list):
        return [substitute(item, variables) for item in template]

    if isinstance(template, Mapping):
        return {key: substitute(value, variables) for key, value in template.items()}

    return template
