# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""MCP Tool Call - call a single tool on a stdio MCP server from the command line.

This library provides the pieces behind the `mcp-tool-call` command:

- Normalization of command-line flags or out-of-band environment variables
  into one immutable invocation descriptor
- Server profiles loaded from `mcpServers` configuration files
- Launching the server over a stdio transport with a layered environment
- A single-shot tool call executor with guaranteed transport teardown
- JSON result reporting and exit code selection
"""

from mcp_tool_call.config import ServerProfile, resolve_server_profile
from mcp_tool_call.descriptor import (
    InvocationDescriptor,
    ParsedArguments,
    build_invocation_descriptor,
    parse_invocation_args,
)
from mcp_tool_call.errors import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    InvalidProfileError,
    LaunchError,
    McpCallError,
    ProfileNotFoundError,
    ProtocolError,
    RemoteToolError,
    TransportError,
    UsageError,
)
from mcp_tool_call.executor import ExecutorState, ToolCallExecutor, execute_tool_call
from mcp_tool_call.key_value import parse_key_value_pair
from mcp_tool_call.launcher import (
    build_server_environment,
    find_actual_executable,
    launch_transport,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ExecutorState",
    "InvalidProfileError",
    "InvocationDescriptor",
    "LaunchError",
    "McpCallError",
    "ParsedArguments",
    "ProfileNotFoundError",
    "ProtocolError",
    "RemoteToolError",
    "ServerProfile",
    "ToolCallExecutor",
    "TransportError",
    "UsageError",
    "__version__",
    "build_invocation_descriptor",
    "build_server_environment",
    "execute_tool_call",
    "find_actual_executable",
    "launch_transport",
    "parse_invocation_args",
    "parse_key_value_pair",
    "resolve_server_profile",
]
