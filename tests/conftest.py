"""Shared fixtures for mcpeek tests."""

import json
import sys
from pathlib import Path

import pytest

from shared.config import ExecutorSettings, RpcSettings

FAKE_SERVER = Path(__file__).parent / "fake_mcp_server.py"


@pytest.fixture
def server_command():
    """Command and arguments that start the fake MCP server."""
    return sys.executable, [str(FAKE_SERVER)]


@pytest.fixture
def rpc_settings():
    """RPC settings with a short deadline so timeout tests stay fast."""
    return RpcSettings(request_timeout=2.0, client_name="mcpeek-tests", client_version="0.0.1")


@pytest.fixture
def executor_settings():
    return ExecutorSettings(http_timeout=5.0, cli_timeout=10.0)


@pytest.fixture
def manual_data():
    """A small UTCP manual with one HTTP and one CLI tool."""
    return {
        "manual_version": "1.0.0",
        "utcp_version": "1.0.1",
        "info": {
            "title": "Test Manual",
            "version": "2.0.0",
            "description": "Tools for tests"
        },
        "variables": {
            "BASE_URL": "https://api.example.com",
            "API_TOKEN": "manual-token"
        },
        "tools": [
            {
                "name": "get_user",
                "description": "Fetch a user",
                "inputs": {
                    "type": "object",
                    "properties": {"user_id": {"type": "string"}},
                    "required": ["user_id"]
                },
                "outputs": {"type": "object"},
                "tags": ["users"],
                "tool_call_template": {
                    "call_template_type": "http",
                    "url": "${BASE_URL}/users/{user_id}",
                    "http_method": "GET",
                    "auth": {"auth_type": "bearer", "token": "${API_TOKEN}"},
                    "headers": {"X-Client": "mcpeek"}
                }
            },
            {
                "name": "say",
                "description": "Print a message",
                "inputs": {
                    "type": "object",
                    "properties": {"text": {"type": "string"}}
                },
                "outputs": {"type": "string"},
                "tool_call_template": {
                    "call_template_type": "cli",
                    "commands": ["echo {text}"]
                }
            }
        ]
    }


@pytest.fixture
def manual_file(tmp_path, manual_data):
    path = tmp_path / "manual.json"
    path.write_text(json.dumps(manual_data))
    return path
