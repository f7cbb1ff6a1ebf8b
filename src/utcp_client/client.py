"""UTCP client backed by a static manual.

Tools come straight from the manual and are executed directly over HTTP
or as local commands. There is no server process and no background task.
UTCP has no prompts or resources; those operations always fail.
"""

from pathlib import Path
from typing import Any, Optional

import httpx

from shared.capability import CapabilityClient
from shared.config import ExecutorSettings
from shared.errors import InspectorError, ToolNotFoundError, UnsupportedOperationError
from shared.logging import LineBuffer, get_logger
from shared.models import (
    PromptDescriptor,
    PromptResult,
    ResourceDescriptor,
    ResourceReadResult,
    ServerInfo,
    ToolCallResult,
    ToolDescriptor,
)
from utcp_client.executor import ToolExecutor
from utcp_client.manual import UtcpManual, load_manual
from utcp_client.template import TemplateProcessor

logger = get_logger(__name__)


class UtcpClient(CapabilityClient):
    """
    Capability client for a UTCP manual.

    Usage:
        async with await UtcpClient.from_path("manual.json") as client:
            await client.initialize()
            result = await client.call_tool("get_weather", {"city": "Oslo"})
    """

    def __init__(
        self,
        manual: UtcpManual,
        settings: Optional[ExecutorSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self.manual = manual
        self.executor = ToolExecutor(
            TemplateProcessor(manual.variables),
            settings=settings,
            http_client=http_client
        )
        self._logs = LineBuffer()
        self._server_info = ServerInfo(
            name=manual.info.title,
            version=manual.info.version,
            protocol_type="UTCP",
            protocol_version=manual.utcp_version,
            capabilities=[
                f"{len(manual.tools)} tools",
                "HTTP execution",
                "CLI execution",
            ]
        )

    @classmethod
    async def from_path(cls, path: str | Path, **kwargs: Any) -> "UtcpClient":
        """
        Load a manual from disk and build a client for it.

        Raises:
            ManifestError: If the manual cannot be read or is invalid
        """
        manual = await load_manual(path)
        return cls(manual, **kwargs)

    async def __aenter__(self) -> "UtcpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    def _log(self, message: str) -> None:
        self._logs.append(message)

    async def initialize(self) -> ServerInfo:
        self._log("UTCP client initialized")
        logger.info("UTCP client initialized", manual=self.manual.info.title)
        return self._server_info

    async def list_tools(self) -> list[ToolDescriptor]:
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description,
                input_schema=tool.inputs
            )
            for tool in self.manual.tools
        ]

    async def call_tool(
        self,
        name: str,
        arguments: Optional[dict[str, Any]] = None
    ) -> ToolCallResult:
        tool = self.manual.get_tool(name)
        if tool is None:
            raise ToolNotFoundError(name)

        self._log(f"Calling tool: {name} with args: {arguments}")
        try:
            result = await self.executor.execute_tool(tool, arguments)
        except InspectorError as e:
            self._log(f"Tool '{name}' failed: {e}")
            raise

        self._log(f"Tool '{name}' execution completed")
        return result

    async def list_prompts(self) -> list[PromptDescriptor]:
        return []

    async def get_prompt(
        self,
        name: str,
        arguments: Optional[dict[str, str]] = None
    ) -> PromptResult:
        raise UnsupportedOperationError("UTCP does not support prompts")

    async def list_resources(self) -> list[ResourceDescriptor]:
        return []

    async def read_resource(self, uri: str) -> ResourceReadResult:
        raise UnsupportedOperationError("UTCP does not support resources")

    def get_server_info(self) -> Optional[ServerInfo]:
        return self._server_info

    def get_logs(self) -> list[str]:
        return self._logs.drain()

    async def shutdown(self) -> None:
        await self.executor.close()
        self._log("UTCP client shutdown")
