"""Tool-call telemetry models and helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolCallTelemetry:
    """Redacted summary of one tool call; arguments are never recorded."""

    tool_name: str
    status: str
    latency_ms: int
    error_code: str = ""


def log_tool_call(telemetry: ToolCallTelemetry) -> None:
    """Emit one audit line per tool call."""
    logger.info(
        "[TOOL] name=%s status=%s latency_ms=%d error_code=%s",
        telemetry.tool_name,
        telemetry.status,
        telemetry.latency_ms,
        telemetry.error_code or "-",
    )
