"""Utility helpers for LiveScribe."""

from .timers import RestartableTimer, TimerFactory

__all__ = ["RestartableTimer", "TimerFactory"]
