"""Capabilities the flow interpreter can dispatch to."""

from .base import Capability
from .dispatcher import CapabilityDispatcher, build_dispatcher

__all__ = ["Capability", "CapabilityDispatcher", "build_dispatcher"]
