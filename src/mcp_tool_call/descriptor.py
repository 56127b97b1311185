# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Normalization of raw CLI input into a single invocation descriptor.

Command lines look like::

    mcp-tool-call node build/index.js --tool-name search --tool-arg query=mcp -e DEBUG=1
    mcp-tool-call --config mcp.json --server docs --tool-name search -- --verbose

A literal `--` splits the tokens into a front segment, where the flags below are
recognized, and a passthrough segment that is never interpreted:

- `-e/--env KEY=VALUE` (repeatable): environment overrides for the server.
- `--tool-arg KEY=VALUE` (repeatable): arguments of the tool call.
- `--tool-name NAME`: the tool to call (required).
- `--config PATH` and `--server NAME`: select a server profile; the two flags
  must be used together.
- `--help`: print usage and exit. The short `-h` is left to the server.

Any other token of the front segment, and every passthrough token, is positional.
Without a profile, the first positional is the server command and the rest are
its arguments. With a profile, the profile supplies command, arguments and
environment, and positionals and `--env` flags are ignored.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from mcp_tool_call.config import resolve_server_profile
from mcp_tool_call.errors import UsageError
from mcp_tool_call.key_value import parse_key_value_pairs

logger = logging.getLogger(__name__)

SEPARATOR = "--"


@dataclass(frozen=True)
class InvocationDescriptor:
    """Fully resolved description of what to launch and which tool to call."""

    server_command: str
    server_args: tuple[str, ...]
    env_overrides: Mapping[str, str]
    tool_name: str
    tool_args: Mapping[str, Any]

    def __post_init__(self) -> None:
        """Freeze the sequence and mapping fields."""
        object.__setattr__(self, "server_args", tuple(self.server_args))
        object.__setattr__(
            self, "env_overrides", MappingProxyType(dict(self.env_overrides))
        )
        object.__setattr__(self, "tool_args", MappingProxyType(dict(self.tool_args)))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly copy, used for debug logging."""
        return {
            "serverCommand": self.server_command,
            "serverArgs": list(self.server_args),
            "envOverrides": dict(self.env_overrides),
            "toolName": self.tool_name,
            "toolArgs": dict(self.tool_args),
        }


@dataclass
class ParsedArguments:
    """Raw values collected from one ingestion channel, before validation."""

    positionals: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    tool_name: str | None = None
    tool_args: dict[str, Any] = field(default_factory=dict)
    config_path: str | None = None
    server_name: str | None = None


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises `UsageError` instead of exiting the process."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    """Create the parser for the front segment of the command line."""
    parser = _ArgumentParser(
        prog="mcp-tool-call",
        description="Call a single tool on a stdio MCP server and print the result as JSON.",
        usage=(
            "%(prog)s [options] <server-command> [server-arg ...] [-- server-arg ...]\n"
            "       %(prog)s --config PATH --server NAME --tool-name NAME [options]"
        ),
        allow_abbrev=False,
        add_help=False,
    )
    parser.add_argument(
        "--help",
        action="help",
        help="Show this message and exit",
    )
    parser.add_argument(
        "-e",
        "--env",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Environment variable for the server process (repeatable)",
    )
    parser.add_argument(
        "--tool-name",
        help="Name of the tool to call (required)",
    )
    parser.add_argument(
        "--tool-arg",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Tool argument (repeatable)",
    )
    parser.add_argument(
        "--config",
        help="Path to a JSON configuration file with an 'mcpServers' object",
    )
    parser.add_argument(
        "--server",
        help="Server name within the configuration file (requires --config)",
    )
    return parser


def split_separator(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split tokens at the first literal `--` into (front, passthrough)."""
    tokens = list(argv)
    if SEPARATOR not in tokens:
        return tokens, []
    index = tokens.index(SEPARATOR)
    return tokens[:index], tokens[index + 1 :]


def parse_invocation_args(argv: Sequence[str]) -> ParsedArguments:
    """Collect flags and positional tokens from a command line.

    Args:
        argv: Command-line tokens after the program name.

    Returns:
        The raw values; nothing is validated beyond flag syntax.

    Raises:
        UsageError: If a recognized flag is missing its value.
    """
    front, passthrough = split_separator(argv)
    options, unknown = build_parser().parse_known_args(front)

    return ParsedArguments(
        positionals=[*unknown, *passthrough],
        env=parse_key_value_pairs(options.env),
        tool_name=options.tool_name,
        tool_args=parse_key_value_pairs(options.tool_arg),
        config_path=options.config,
        server_name=options.server,
    )


def build_invocation_descriptor(
    parsed: ParsedArguments,
    *,
    cwd: str | Path | None = None,
) -> InvocationDescriptor:
    """Validate raw values and produce the invocation descriptor.

    Validation that needs no I/O runs first, so flag mistakes are reported
    before the configuration file is touched.

    Args:
        parsed: Values from `parse_invocation_args` or the out-of-band channel.
        cwd: Base directory for a relative `--config` path.

    Returns:
        The immutable invocation descriptor.

    Raises:
        UsageError: If flags are missing or used in an invalid combination.
        ConfigError: If the selected server profile cannot be loaded.
    """
    if parsed.config_path and not parsed.server_name:
        raise UsageError("--config requires --server; the two flags must be used together")
    if parsed.server_name and not parsed.config_path:
        raise UsageError("--server requires --config; the two flags must be used together")

    if parsed.tool_args and not parsed.tool_name:
        raise UsageError("Tool arguments (--tool-arg) can only be used with --tool-name")
    if not parsed.tool_name:
        raise UsageError("Tool name (--tool-name) is required")

    if parsed.config_path and parsed.server_name:
        profile = resolve_server_profile(parsed.config_path, parsed.server_name, cwd=cwd)
        if parsed.positionals:
            logger.warning(
                "Ignoring positional arguments %s: server '%s' is defined by %s",
                parsed.positionals,
                parsed.server_name,
                parsed.config_path,
            )
        if parsed.env:
            logger.warning(
                "Ignoring --env values %s: server '%s' is defined by %s",
                sorted(parsed.env),
                parsed.server_name,
                parsed.config_path,
            )
        command = profile.command
        args: Sequence[str] = profile.args
        env: Mapping[str, str] = profile.env
    else:
        command = parsed.positionals[0] if parsed.positionals else ""
        args = parsed.positionals[1:]
        env = parsed.env

    if not command:
        raise UsageError(
            "MCP server command is required as the first positional argument "
            "(or use --config and --server)"
        )

    descriptor = InvocationDescriptor(
        server_command=command,
        server_args=tuple(args),
        env_overrides=env,
        tool_name=parsed.tool_name,
        tool_args=parsed.tool_args,
    )
    logger.debug("Resolved invocation: %s", descriptor.to_dict())
    return descriptor


__all__ = [
    "SEPARATOR",
    "InvocationDescriptor",
    "ParsedArguments",
    "build_invocation_descriptor",
    "build_parser",
    "parse_invocation_args",
    "split_separator",
]
