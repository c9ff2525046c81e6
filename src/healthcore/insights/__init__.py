"""Behavioral pattern insights."""

from __future__ import annotations

from healthcore.insights.patterns import RULES, detect_patterns

__all__ = ["RULES", "detect_patterns"]
