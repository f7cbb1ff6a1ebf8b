"""Core data models for mcpeek.

These are the shapes every backend hands back through the capability
interface. Field names are snake_case in Python and camelCase on the wire,
so each model accepts both.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for models that cross the JSON-RPC boundary."""
    model_config = ConfigDict(populate_by_name=True)


class ToolDescriptor(WireModel):
    """A callable tool as advertised by a server or manual."""
    name: str
    description: Optional[str] = None
    input_schema: dict[str, Any] = Field(
        default_factory=dict,
        alias="inputSchema",
        description="JSON Schema for the tool arguments"
    )


class PromptArgument(WireModel):
    """One named argument accepted by a prompt."""
    name: str
    description: Optional[str] = None
    required: bool = False


class PromptDescriptor(WireModel):
    """A prompt template as advertised by a server."""
    name: str
    description: Optional[str] = None
    arguments: list[PromptArgument] = Field(default_factory=list)


class ResourceDescriptor(WireModel):
    """A readable resource as advertised by a server."""
    uri: str
    name: str
    description: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mimeType")


class TextResourceContents(WireModel):
    uri: str
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    text: str


class BlobResourceContents(WireModel):
    uri: str
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    blob: str = Field(..., description="Base64-encoded binary data")


ResourceContents = Union[TextResourceContents, BlobResourceContents]


class TextContent(WireModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(WireModel):
    type: Literal["image"] = "image"
    data: str = Field(..., description="Base64-encoded image data")
    mime_type: str = Field(..., alias="mimeType")


class EmbeddedResource(WireModel):
    type: Literal["resource"] = "resource"
    resource: ResourceContents


ContentItem = Annotated[
    Union[TextContent, ImageContent, EmbeddedResource],
    Field(discriminator="type")
]


class ToolCallResult(WireModel):
    """
    Result of a tool call.

    Content items keep the order the backend produced them in.
    """
    content: list[ContentItem] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> "ToolCallResult":
        """Build a result holding a single text item."""
        return cls(content=[TextContent(text=text)], is_error=is_error)

    @property
    def text(self) -> str:
        """Concatenated text of all text items."""
        return "".join(c.text for c in self.content if isinstance(c, TextContent))


class PromptMessage(WireModel):
    role: str
    content: Union[ContentItem, list[ContentItem]]

    @property
    def items(self) -> list[Any]:
        """Content as a list, whether the server sent one item or many."""
        if isinstance(self.content, list):
            return self.content
        return [self.content]


class PromptResult(WireModel):
    """Result of rendering a prompt."""
    description: Optional[str] = None
    messages: list[PromptMessage] = Field(default_factory=list)


class ResourceReadResult(WireModel):
    """Result of reading a resource."""
    contents: list[ResourceContents] = Field(default_factory=list)


class ServerInfo(BaseModel):
    """Identity of the backend a client is talking to."""
    name: str
    version: str
    protocol_type: Literal["MCP", "UTCP"]
    protocol_version: Optional[str] = None
    capabilities: list[str] = Field(default_factory=list)
