"""Utility helpers for linctl."""

from .team import resolve_team
from .time_expression import resolve_time_expression

__all__ = ["resolve_team", "resolve_time_expression"]
