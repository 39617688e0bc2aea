"""Flow definitions, matching and execution."""

from .interpreter import FlowInterpreter
from .matcher import match_flow
from .registry import FlowRegistry
from .schema import BranchStep, Condition, FlowDef, OperationStep, ResponseStep, Trigger

__all__ = [
    "BranchStep",
    "Condition",
    "FlowDef",
    "FlowInterpreter",
    "FlowRegistry",
    "OperationStep",
    "ResponseStep",
    "Trigger",
    "match_flow",
]
