"""MCP Client - JSON-RPC over a stdio subprocess.

Spawns an MCP server as a child process and multiplexes concurrent
requests over its stdin/stdout, correlating responses by request id.
"""

from mcp_client.client import McpClient
from mcp_client.correlator import RequestCorrelator
from mcp_client.transport import StdioTransport

__all__ = [
    "McpClient",
    "RequestCorrelator",
    "StdioTransport",
]
