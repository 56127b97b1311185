# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Output of the tool call outcome and selection of the exit code."""

from __future__ import annotations

import json
import sys
from typing import Any, TextIO

from mcp.types import CallToolResult

from mcp_tool_call.errors import McpCallError

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def result_to_json(result: CallToolResult) -> dict[str, Any]:
    """Convert a tool result into its protocol JSON shape."""
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


def report_result(result: CallToolResult, stream: TextIO | None = None) -> int:
    """Print the result as formatted JSON on stdout and return the exit code."""
    print(json.dumps(result_to_json(result), indent=2), file=stream or sys.stdout)
    return EXIT_SUCCESS


def format_error(error: McpCallError) -> str:
    """Render an error as a single diagnostic line."""
    message = f"Error: {error.message}"
    if error.code is not None:
        message += f" (code {error.code})"
    return message


def report_error(error: McpCallError, stream: TextIO | None = None) -> int:
    """Print a diagnostic on stderr and return the exit code."""
    print(format_error(error), file=stream or sys.stderr)
    return EXIT_FAILURE


__all__ = [
    "EXIT_CANCELLED",
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "format_error",
    "report_error",
    "report_result",
    "result_to_json",
]
