"""UTCP Client - tools described by a static manual.

Loads a UTCP manual and executes its tools directly over HTTP or as
local commands, with ${VAR} substitution from the manual and environment.
"""

from utcp_client.client import UtcpClient
from utcp_client.executor import ToolExecutor
from utcp_client.manual import UtcpManual, load_manual, parse_manual
from utcp_client.template import TemplateProcessor

__all__ = [
    "UtcpClient",
    "ToolExecutor",
    "UtcpManual",
    "load_manual",
    "parse_manual",
    "TemplateProcessor",
]
