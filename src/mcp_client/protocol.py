"""JSON-RPC 2.0 wire models for the MCP stdio protocol.

One message per line. Requests carry an integer id; notifications are
requests without one. Responses carry either a result or an error.
"""

import json
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError

from shared.errors import ProtocolError
from shared.models import (
    PromptDescriptor,
    ResourceDescriptor,
    ServerInfo,
    ToolDescriptor,
    WireModel,
)

JSONRPC_VERSION = "2.0"


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request or notification."""
    jsonrpc: str = JSONRPC_VERSION
    id: Optional[Union[StrictInt, StrictStr]] = None
    method: str
    params: Optional[Any] = None

    @classmethod
    def notification(cls, method: str, params: Any = None) -> "JsonRpcRequest":
        return cls(method=method, params=params)

    @property
    def is_notification(self) -> bool:
        return self.id is None

    def to_line(self) -> str:
        """Serialize to one line of JSON, leaving out absent id and params."""
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.id is not None:
            payload["id"] = self.id
        payload["method"] = self.method
        if self.params is not None:
            payload["params"] = self.params
        return json.dumps(payload, separators=(",", ":"))


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error object."""
    code: int
    message: str
    data: Optional[Any] = None


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response.

    id keeps the raw JSON value so true or 1.0 never match request 1.
    """
    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    result: Optional[Any] = None
    error: Optional[JsonRpcError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def numeric_id(self) -> Optional[int]:
        """The id if it is an integer (bools excluded), else None."""
        if isinstance(self.id, int) and not isinstance(self.id, bool):
            return self.id
        return None


InboundMessage = Union[JsonRpcResponse, JsonRpcRequest]


def parse_message(line: str) -> InboundMessage:
    """
    Classify one line read from the server.

    Anything with a "method" is a request or notification from the
    server; anything else with an "id" is a response.

    Raises:
        ProtocolError: If the line is not a JSON-RPC message
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError("Message is not a JSON object")

    try:
        if "method" in data:
            return JsonRpcRequest.model_validate(data)
        if "id" in data:
            return JsonRpcResponse.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(f"Malformed message: {e}") from e

    raise ProtocolError("Message has neither 'method' nor 'id'")


# MCP handshake

class Implementation(WireModel):
    name: str
    version: str


class ClientCapabilities(WireModel):
    roots: Optional[dict[str, Any]] = None
    sampling: Optional[dict[str, Any]] = None


class InitializeParams(WireModel):
    protocol_version: str = Field(..., alias="protocolVersion")
    capabilities: ClientCapabilities = Field(default_factory=ClientCapabilities)
    client_info: Implementation = Field(..., alias="clientInfo")


class ServerCapabilities(WireModel):
    tools: Optional[dict[str, Any]] = None
    prompts: Optional[dict[str, Any]] = None
    resources: Optional[dict[str, Any]] = None
    logging: Optional[dict[str, Any]] = None

    def names(self) -> list[str]:
        """Names of the capabilities the server advertised."""
        return [
            name for name in ("tools", "prompts", "resources", "logging")
            if getattr(self, name) is not None
        ]


class InitializeResult(WireModel):
    protocol_version: str = Field(..., alias="protocolVersion")
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    server_info: Implementation = Field(..., alias="serverInfo")
    instructions: Optional[str] = None

    def to_server_info(self) -> ServerInfo:
        return ServerInfo(
            name=self.server_info.name,
            version=self.server_info.version,
            protocol_type="MCP",
            protocol_version=self.protocol_version,
            capabilities=self.capabilities.names()
        )


# Method results

class ListToolsResult(WireModel):
    tools: list[ToolDescriptor] = Field(default_factory=list)


class ListPromptsResult(WireModel):
    prompts: list[PromptDescriptor] = Field(default_factory=list)


class ListResourcesResult(WireModel):
    resources: list[ResourceDescriptor] = Field(default_factory=list)
