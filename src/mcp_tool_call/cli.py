# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Command-line entry point: call one tool on a stdio MCP server.

Usage:
    mcp-tool-call <server-command> [server-arg ...] --tool-name <name> \
        [--tool-arg key=value ...] [-e KEY=VALUE ...] [-- server-arg ...]

    mcp-tool-call --config <path> --server <name> --tool-name <name> \
        [--tool-arg key=value ...]

Examples:
    # Direct invocation
    mcp-tool-call node build/index.js --tool-name add --tool-arg a=5 --tool-arg b=10

    # Server profile from a configuration file
    mcp-tool-call --config mcp.json --server docs --tool-name search --tool-arg query=mcp

    # Everything after `--` goes to the server, even recognized flags
    mcp-tool-call uv run my-server --tool-name get_version -- --env production

On success the tool result is printed to stdout as JSON and the exit code is 0.
Any failure prints a diagnostic to stderr and exits with 1; an interrupted call
exits with 130 after the server process has been stopped.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from mcp.types import CallToolResult

from mcp_tool_call.descriptor import (
    InvocationDescriptor,
    build_invocation_descriptor,
    parse_invocation_args,
)
from mcp_tool_call.errors import McpCallError
from mcp_tool_call.executor import execute_tool_call
from mcp_tool_call.launcher import launch_transport
from mcp_tool_call.out_of_band import (
    has_out_of_band_invocation,
    parsed_arguments_from_environ,
)
from mcp_tool_call.reporter import EXIT_CANCELLED, report_error, report_result
from mcp_tool_call.settings import CliSettings, configure_logging

logger = logging.getLogger(__name__)


def resolve_invocation(
    argv: Sequence[str],
    *,
    environ: Mapping[str, str],
    cwd: Path | None = None,
) -> InvocationDescriptor:
    """Build the invocation descriptor from the command line or the environment.

    The environment channel is only consulted when the command line is empty.
    """
    if not argv and has_out_of_band_invocation(environ):
        logger.debug("Reading invocation from environment variables")
        parsed = parsed_arguments_from_environ(environ)
    else:
        parsed = parse_invocation_args(argv)
    return build_invocation_descriptor(parsed, cwd=cwd)


async def run_invocation(
    descriptor: InvocationDescriptor,
    *,
    environ: Mapping[str, str],
    settings: CliSettings,
    cwd: Path | None = None,
) -> CallToolResult:
    """Launch the server and perform the tool call.

    SIGTERM cancels the call the same way Ctrl+C does, so the server process is
    stopped before we exit.
    """
    transport = launch_transport(descriptor, environ=environ, cwd=cwd)

    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    sigterm_installed = False
    if task is not None:
        try:
            loop.add_signal_handler(signal.SIGTERM, task.cancel)
            sigterm_installed = True
        except (NotImplementedError, RuntimeError, ValueError):
            logger.debug("SIGTERM handler not available on this platform")

    try:
        return await execute_tool_call(
            transport,
            descriptor.tool_name,
            descriptor.tool_args,
            timeout=settings.request_timeout,
        )
    finally:
        if sigterm_installed:
            loop.remove_signal_handler(signal.SIGTERM)


def main(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    cwd: str | Path | None = None,
) -> int:
    """Entry point for the CLI.

    Args:
        argv: Command-line tokens after the program name (defaults to `sys.argv`).
        environ: Environment to use (defaults to a copy of `os.environ`).
        cwd: Working directory for relative config paths and the server process.

    Returns:
        Process exit code.
    """
    argv = sys.argv[1:] if argv is None else list(argv)
    environ = dict(os.environ) if environ is None else environ
    cwd = Path.cwd() if cwd is None else Path(cwd)

    try:
        settings = CliSettings.from_environ(environ)
    except McpCallError as ex:
        return report_error(ex)
    configure_logging(settings.log_level)

    try:
        descriptor = resolve_invocation(argv, environ=environ, cwd=cwd)
        result = asyncio.run(
            run_invocation(descriptor, environ=environ, settings=settings, cwd=cwd)
        )
    except McpCallError as ex:
        logger.debug("Tool call failed", exc_info=True)
        return report_error(ex)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.warning("Tool call cancelled by operator; the server process was stopped")
        return EXIT_CANCELLED

    return report_result(result)


if __name__ == "__main__":
    raise SystemExit(main())
