"""Capability interface shared by every backend.

A caller holds one CapabilityClient and never needs to know whether it
is backed by a JSON-RPC subprocess or a UTCP manual. Implementations
share nothing but this contract.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from shared.models import (
    PromptDescriptor,
    PromptResult,
    ResourceDescriptor,
    ResourceReadResult,
    ServerInfo,
    ToolCallResult,
    ToolDescriptor,
)


class CapabilityClient(ABC):
    """
    Uniform operations for discovering and invoking capabilities.

    initialize() must be awaited exactly once before the other
    operations. Failures are raised as shared.errors.InspectorError
    subclasses.
    """

    @abstractmethod
    async def initialize(self) -> ServerInfo:
        """Perform the backend handshake and return the server identity."""
        pass

    @abstractmethod
    async def list_tools(self) -> list[ToolDescriptor]:
        pass

    @abstractmethod
    async def list_prompts(self) -> list[PromptDescriptor]:
        pass

    @abstractmethod
    async def list_resources(self) -> list[ResourceDescriptor]:
        pass

    @abstractmethod
    async def call_tool(
        self,
        name: str,
        arguments: Optional[dict[str, Any]] = None
    ) -> ToolCallResult:
        """
        Invoke a tool by name.

        Raises:
            ToolNotFoundError: If the backend does not know the tool
        """
        pass

    @abstractmethod
    async def get_prompt(
        self,
        name: str,
        arguments: Optional[dict[str, str]] = None
    ) -> PromptResult:
        pass

    @abstractmethod
    async def read_resource(self, uri: str) -> ResourceReadResult:
        pass

    @abstractmethod
    def get_server_info(self) -> Optional[ServerInfo]:
        """Server identity captured by initialize(), if it has run."""
        pass

    @abstractmethod
    def get_logs(self) -> list[str]:
        """Drain backend log lines collected since the previous call."""
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        pass
