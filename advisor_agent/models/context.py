"""Pydantic model for the state threaded through one flow run."""

from typing import Any, Optional, Union

from pydantic import BaseModel


class ExecutionContext(BaseModel):
    """Mutable state for a single flow invocation.

    Created fresh by the entry point and owned by exactly one interpreter
    run. ``result`` holds the last operation's raw result, ``response``
    the last rendered response text, ``variables`` the bindings extracted
    from successful operations.
    """

    message: str = ""
    caller_id: Union[int, str] = 0
    conversation_id: str = ""

    flow_id: str = ""
    flow_name: str = ""

    result: Optional[dict[str, Any]] = None
    response: Optional[str] = None
    variables: dict[str, Any] = {}
