"""Advisor data backends."""

from .base import AdvisorBackend, ClientRecord, MeetingRecord
from .memory import InMemoryBackend

__all__ = ["AdvisorBackend", "ClientRecord", "InMemoryBackend", "MeetingRecord"]
