"""UTCP manual models and loader.

A manual is a static JSON document listing tools and, for each one, a
call template saying how to invoke it over HTTP or as a CLI command.
Loading is strict: anything missing or malformed fails immediately.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

import aiofiles
from jsonschema import Draft7Validator, SchemaError
from pydantic import BaseModel, Field, ValidationError, model_validator

from shared.errors import ManifestError
from shared.logging import get_logger

logger = get_logger(__name__)


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class ApiKeyAuth(BaseModel):
    """API key sent in a named header, a query parameter, or Authorization."""
    auth_type: Literal["api_key"] = "api_key"
    api_key: str
    header_name: Optional[str] = None
    query_param_name: Optional[str] = None


class BearerAuth(BaseModel):
    auth_type: Literal["bearer"] = "bearer"
    token: str


class BasicAuth(BaseModel):
    auth_type: Literal["basic"] = "basic"
    username: str
    password: str


AuthConfig = Annotated[
    Union[ApiKeyAuth, BearerAuth, BasicAuth],
    Field(discriminator="auth_type")
]


class HttpCallTemplate(BaseModel):
    """
    How to call a tool over HTTP.

    url may contain ${VAR} placeholders and {argument} path parameters.
    When body_field names a call argument, that argument becomes the
    JSON request body.
    """
    call_template_type: Literal["http"] = "http"
    url: str
    http_method: HttpMethod
    auth: Optional[AuthConfig] = None
    body_field: Optional[str] = None
    headers: dict[str, str] = Field(default_factory=dict)


class CliCallTemplate(BaseModel):
    """
    How to call a tool as one or more commands.

    With append_to_final_output unset only the first command runs.
    """
    call_template_type: Literal["cli"] = "cli"
    commands: list[str] = Field(..., min_length=1)
    append_to_final_output: bool = False


CallTemplate = Annotated[
    Union[HttpCallTemplate, CliCallTemplate],
    Field(discriminator="call_template_type")
]


class ManualInfo(BaseModel):
    title: str
    version: str
    description: Optional[str] = None


class UtcpTool(BaseModel):
    """A tool definition in a UTCP manual."""
    name: str
    description: Optional[str] = None
    inputs: dict[str, Any] = Field(..., description="JSON Schema for the arguments")
    outputs: dict[str, Any] = Field(..., description="JSON Schema for the result")
    tags: list[str] = Field(default_factory=list)
    tool_call_template: CallTemplate


class UtcpManual(BaseModel):
    """Top-level UTCP manual document."""
    manual_version: str
    utcp_version: str
    info: ManualInfo
    variables: dict[str, str] = Field(default_factory=dict)
    tools: list[UtcpTool]

    @model_validator(mode="after")
    def check_unique_tool_names(self) -> "UtcpManual":
        seen: set[str] = set()
        for tool in self.tools:
            if tool.name in seen:
                raise ValueError(f"Duplicate tool name '{tool.name}'")
            seen.add(tool.name)
        return self

    def get_tool(self, name: str) -> Optional[UtcpTool]:
        return next((t for t in self.tools if t.name == name), None)


def parse_manual(content: str, source: str = "<string>") -> UtcpManual:
    """
    Parse and validate a manual document.

    Args:
        content: JSON text of the manual
        source: Where the text came from, for error messages

    Raises:
        ManifestError: If the JSON, the structure, or a tool schema is invalid
    """
    try:
        manual = UtcpManual.model_validate_json(content)
    except ValidationError as e:
        raise ManifestError(f"Failed to parse UTCP manual {source}: {e}") from e

    for tool in manual.tools:
        for label, schema in (("inputs", tool.inputs), ("outputs", tool.outputs)):
            try:
                Draft7Validator.check_schema(schema)
            except SchemaError as e:
                raise ManifestError(
                    f"Tool '{tool.name}' in {source} has an invalid {label} schema: {e.message}"
                ) from e

    return manual


async def load_manual(path: str | Path) -> UtcpManual:
    """
    Read and parse a manual file.

    Raises:
        ManifestError: If the file cannot be read or is invalid
    """
    path = Path(path)
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
    except OSError as e:
        raise ManifestError(f"Failed to read UTCP manual file {path}: {e}") from e

    manual = parse_manual(content, source=str(path))
    logger.info(
        "UTCP manual loaded",
        path=str(path),
        title=manual.info.title,
        tool_count=len(manual.tools)
    )
    return manual
