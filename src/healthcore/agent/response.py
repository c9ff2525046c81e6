"""JSON envelope for ``--json`` CLI output.

Every command emits the same top-level shape so scripts and assistants can
branch on ``success`` and read ``data`` without per-command parsing.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

SCHEMA_VERSION = "1.0"


@dataclass
class AgentResponse:
    """Result of one CLI command."""

    success: bool
    command: str
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    human_summary: str = ""
    schema_version: str = SCHEMA_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "command": self.command,
            "data": self.data,
            "errors": self.errors,
            "warnings": self.warnings,
            "suggestions": self.suggestions,
            "human_summary": self.human_summary,
            "timestamp": datetime.now().isoformat(timespec="seconds"),
            "schema_version": self.schema_version,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize; dates and other non-JSON values are rendered with str()."""
        return json.dumps(self.to_dict(), indent=indent, default=str)


def create_response(
    command: str,
    data: Optional[dict[str, Any]] = None,
    human_summary: str = "",
    warnings: Optional[list[str]] = None,
    suggestions: Optional[list[str]] = None,
) -> AgentResponse:
    """Successful response for ``command`` carrying ``data``."""
    return AgentResponse(
        success=True,
        command=command,
        data=data or {},
        warnings=warnings or [],
        suggestions=suggestions or [],
        human_summary=human_summary,
    )


def error_response(
    command: str,
    error: str,
    suggestions: Optional[list[str]] = None,
) -> AgentResponse:
    """Failed response with a single error message.

    Args:
        command: The command that failed
        error: Error message
        suggestions: How the user might fix it
    """
    return AgentResponse(
        success=False,
        command=command,
        errors=[error],
        suggestions=suggestions or [],
        human_summary=f"Error: {error}",
    )
