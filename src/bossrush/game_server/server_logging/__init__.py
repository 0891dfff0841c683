"""Structured logging helpers for the Boss Rush server."""

from .event_log import EventLogger, EventRecord

__all__ = ["EventLogger", "EventRecord"]
