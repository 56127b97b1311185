# Copyright (c) 2025 Airbyte, Inc., all rights reserved.
"""Allow `python -m mcp_tool_call`."""

from mcp_tool_call.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
