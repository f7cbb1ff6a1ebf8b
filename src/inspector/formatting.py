"""Plain-text rendering of capability results."""

from shared.models import (
    BlobResourceContents,
    EmbeddedResource,
    ImageContent,
    PromptResult,
    ResourceReadResult,
    ServerInfo,
    TextContent,
    TextResourceContents,
    ToolCallResult,
)

SEPARATOR = "\n---\n\n"


def format_content_item(item) -> str:
    if isinstance(item, TextContent):
        return item.text

    if isinstance(item, ImageContent):
        return f"[Image: {item.mime_type} ({len(item.data)} bytes)]"

    if isinstance(item, EmbeddedResource):
        resource = item.resource
        if isinstance(resource, TextResourceContents):
            out = f"[Resource: {resource.uri}]\n"
            if resource.mime_type:
                out += f"MIME Type: {resource.mime_type}\n\n"
            return out + resource.text
        out = f"[Binary Resource: {resource.uri}]\n"
        if resource.mime_type:
            out += f"MIME Type: {resource.mime_type}\n"
        return out

    return str(item)


def format_tool_result(tool_name: str, result: ToolCallResult) -> str:
    status = "ERROR" if result.is_error else "SUCCESS"
    body = SEPARATOR.join(format_content_item(c) for c in result.content)
    return f"Tool Call Result: {tool_name}\n\nStatus: {status}\n\nContent:\n{body}"


def format_prompt_result(prompt_name: str, result: PromptResult) -> str:
    output = f"Prompt Result: {prompt_name}\n\n"
    if result.description:
        output += f"Description: {result.description}\n\n"
    output += f"Messages ({len(result.messages)}):\n\n"

    messages = []
    for message in result.messages:
        content = "\n".join(format_content_item(c) for c in message.items)
        messages.append(f"Role: {message.role}\n\nContent:\n{content}\n")

    return output + SEPARATOR.join(messages)


def format_resource_result(uri: str, result: ResourceReadResult) -> str:
    """Render read contents; a content URI is only repeated when it differs from the one read."""
    output = f"Resource Read Result\n\nURI: {uri}\n\n"
    if not result.contents:
        return output + "(empty resource)\n"

    output += f"Contents ({len(result.contents)}):\n\n"

    parts = []
    for content in result.contents:
        part = ""
        if content.uri != uri:
            part += f"URI: {content.uri}\n"
        if isinstance(content, BlobResourceContents):
            part += "[Binary Content]\n"
            if content.mime_type:
                part += f"MIME Type: {content.mime_type}\n"
            part += f"Size: {len(content.blob)} bytes (base64 encoded)\n"
        else:
            if content.mime_type:
                part += f"MIME Type: {content.mime_type}\n\n"
            part += content.text
        parts.append(part)

    return output + SEPARATOR.join(parts)


def format_server_info(info: ServerInfo) -> str:
    lines = [
        f"Server: {info.name} {info.version}",
        f"Protocol: {info.protocol_type}"
        + (f" ({info.protocol_version})" if info.protocol_version else ""),
    ]
    if info.capabilities:
        lines.append(f"Capabilities: {', '.join(info.capabilities)}")
    return "\n".join(lines)
