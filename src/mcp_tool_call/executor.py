# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Execution of exactly one MCP tool call over a client transport.

The executor walks a fixed lifecycle::

    IDLE -> TRANSPORT_OPEN -> SESSION_ESTABLISHED -> REQUEST_SENT
         -> RESULT_RECEIVED | FAILED -> TRANSPORT_CLOSED

A failure before the request is sent goes straight to FAILED. The transport is
closed on every path, including cancellation; an error while closing is logged
and never replaces the outcome of the call.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from contextlib import AsyncExitStack
from typing import Any

from fastmcp import Client
from fastmcp.client.transports import ClientTransport
from mcp.shared.exceptions import McpError
from mcp.types import CONNECTION_CLOSED, CallToolResult, TextContent

from mcp_tool_call.errors import (
    LaunchError,
    McpCallError,
    ProtocolError,
    RemoteToolError,
    TransportError,
)

logger = logging.getLogger(__name__)


class ExecutorState(enum.Enum):
    """Lifecycle states of a `ToolCallExecutor`."""

    IDLE = "idle"
    TRANSPORT_OPEN = "transport_open"
    SESSION_ESTABLISHED = "session_established"
    REQUEST_SENT = "request_sent"
    RESULT_RECEIVED = "result_received"
    FAILED = "failed"
    TRANSPORT_CLOSED = "transport_closed"


def _root_cause(ex: BaseException) -> BaseException:
    """Unwrap single-member exception groups raised by anyio task groups."""
    while isinstance(ex, BaseExceptionGroup) and len(ex.exceptions) == 1:
        ex = ex.exceptions[0]
    return ex


def _result_text(result: CallToolResult) -> str:
    texts = [block.text for block in result.content if isinstance(block, TextContent)]
    return "\n".join(texts) if texts else "Tool reported an error without a message"


class ToolCallExecutor:
    """Open a session over a transport, call one tool, and close the transport.

    Args:
        transport: Transport to the MCP server (stdio for the CLI, in-memory in tests).
        timeout: Optional request timeout in seconds.
        client_factory: Callable building the MCP client; defaults to `fastmcp.Client`.
    """

    def __init__(
        self,
        transport: ClientTransport,
        *,
        timeout: float | None = None,
        client_factory: Callable[..., Any] = Client,
    ) -> None:
        self._transport = transport
        self._timeout = timeout
        self._client_factory = client_factory
        self.state = ExecutorState.IDLE
        self.history: list[ExecutorState] = [ExecutorState.IDLE]

    def _transition(self, state: ExecutorState) -> None:
        logger.debug("Executor state: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    async def execute(self, tool_name: str, tool_args: Mapping[str, Any]) -> CallToolResult:
        """Call `tool_name` once and return its result.

        Args:
            tool_name: Name of the remote tool.
            tool_args: Arguments passed verbatim to the tool.

        Returns:
            The successful `CallToolResult`.

        Raises:
            LaunchError: If the server process could not be spawned.
            TransportError: If the server exited before the handshake or mid-call.
            ProtocolError: If the server answered with a protocol error.
            RemoteToolError: If the tool reported a failure.
        """
        if self.state is not ExecutorState.IDLE:
            raise RuntimeError("ToolCallExecutor instances run a single call")

        stack = AsyncExitStack()
        try:
            client = self._client_factory(self._transport, timeout=self._timeout)
            self._transition(ExecutorState.TRANSPORT_OPEN)
            try:
                await stack.enter_async_context(client)
            except Exception as ex:
                raise self._connection_error(ex) from ex
            self._transition(ExecutorState.SESSION_ESTABLISHED)

            logger.info("Calling tool: %s", tool_name)
            self._transition(ExecutorState.REQUEST_SENT)
            try:
                result: CallToolResult = await client.call_tool_mcp(tool_name, dict(tool_args))
            except McpError as ex:
                if ex.error.code == CONNECTION_CLOSED:
                    raise TransportError(
                        f"Server closed the connection during the call to '{tool_name}': "
                        f"{ex.error.message}",
                        code=ex.error.code,
                    ) from ex
                raise ProtocolError(
                    f"Server rejected the call to '{tool_name}': {ex.error.message}",
                    code=ex.error.code,
                    details=ex.error.data,
                ) from ex
            except Exception as ex:
                cause = _root_cause(ex)
                raise TransportError(
                    f"Server connection failed during the call to '{tool_name}': "
                    f"{type(cause).__name__}: {cause}"
                ) from ex

            if result.isError:
                raise RemoteToolError(
                    f"Tool '{tool_name}' failed: {_result_text(result)}",
                    details=result.model_dump(mode="json", by_alias=True, exclude_none=True),
                )
            self._transition(ExecutorState.RESULT_RECEIVED)
            return result
        except BaseException:
            self._transition(ExecutorState.FAILED)
            raise
        finally:
            try:
                await stack.aclose()
            except Exception:
                logger.warning("Error closing transport", exc_info=True)
            self._transition(ExecutorState.TRANSPORT_CLOSED)

    def _connection_error(self, ex: Exception) -> McpCallError:
        cause = _root_cause(ex)
        if isinstance(cause, OSError):
            return LaunchError(f"Could not start MCP server: {cause}")
        if isinstance(cause, McpError) and cause.error.code != CONNECTION_CLOSED:
            return ProtocolError(
                f"MCP handshake failed: {cause.error.message}",
                code=cause.error.code,
            )
        return TransportError(
            "MCP server exited or failed before the handshake completed: "
            f"{type(cause).__name__}: {cause}"
        )


async def execute_tool_call(
    transport: ClientTransport,
    tool_name: str,
    tool_args: Mapping[str, Any],
    *,
    timeout: float | None = None,
) -> CallToolResult:
    """Call one tool over `transport` with a fresh `ToolCallExecutor`."""
    executor = ToolCallExecutor(transport, timeout=timeout)
    return await executor.execute(tool_name, tool_args)


__all__ = ["ExecutorState", "ToolCallExecutor", "execute_tool_call"]
