"""mcpeek command-line entry point.

Connects to one backend, prints what it offers and optionally calls a
tool, renders a prompt or reads a resource. Always shuts the backend
down before exiting.

Examples:
    mcpeek --list tools -- python -m my_server
    mcpeek --utcp manual.json --call get_weather --arg city=Oslo
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from shared.capability import CapabilityClient
from shared.config import Settings, get_settings
from shared.errors import InspectorError, ToolNotFoundError
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.schema import coerce_inputs, derive_input_fields, validate_schema
from inspector.factory import open_client
from inspector.formatting import (
    format_prompt_result,
    format_resource_result,
    format_server_info,
    format_tool_result,
)

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpeek",
        description="Protocol inspector for MCP servers and UTCP manuals"
    )
    parser.add_argument("--utcp", metavar="PATH", help="Path to UTCP manual JSON file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--list",
        choices=["tools", "prompts", "resources"],
        action="append",
        default=[],
        help="List capabilities of the given kind (repeatable)"
    )
    parser.add_argument("--call", metavar="TOOL", help="Call a tool")
    parser.add_argument("--prompt", metavar="NAME", help="Render a prompt")
    parser.add_argument("--read", metavar="URI", help="Read a resource")
    parser.add_argument(
        "--arg",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Argument for --call or --prompt (repeatable)"
    )
    parser.add_argument("--logs", action="store_true", help="Print backend logs before exiting")
    parser.add_argument("command", nargs="?", help="Command to run the MCP server")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the server command")
    return parser


def parse_key_values(pairs: Sequence[str]) -> dict[str, str]:
    """
    Split KEY=VALUE strings into a dict.

    Raises:
        ValueError: If an entry has no '='
    """
    values = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid argument '{pair}', expected KEY=VALUE")
        values[key] = value
    return values


async def list_capabilities(client: CapabilityClient, kind: str) -> None:
    if kind == "tools":
        items = [(t.name, t.description) for t in await client.list_tools()]
    elif kind == "prompts":
        items = [(p.name, p.description) for p in await client.list_prompts()]
    else:
        items = [(r.uri, r.description or r.name) for r in await client.list_resources()]

    print(f"\n{kind.capitalize()} ({len(items)}):")
    for name, description in items:
        print(f"  {name}" + (f" - {description}" if description else ""))


async def call_tool(client: CapabilityClient, name: str, raw_args: dict[str, str]) -> bool:
    """Coerce arguments using the tool's schema, call it, and print the result."""
    tools = {t.name: t for t in await client.list_tools()}
    tool = tools.get(name)
    if tool is None:
        raise ToolNotFoundError(name)

    arguments = coerce_inputs(derive_input_fields(tool.input_schema), raw_args)
    is_valid, errors = validate_schema(arguments, tool.input_schema)
    if not is_valid:
        raise ValueError(f"Invalid arguments for '{name}': {'; '.join(errors)}")

    result = await client.call_tool(name, arguments or None)
    print()
    print(format_tool_result(name, result))
    return not result.is_error


async def run(ns: argparse.Namespace, settings: Settings) -> int:
    """Execute the parsed command line; returns the process exit code."""
    bind_context(backend="utcp" if ns.utcp else "mcp")
    try:
        raw_args = parse_key_values(ns.arg)
        client = await open_client(
            command=ns.command,
            args=ns.args,
            manual_path=ns.utcp,
            settings=settings
        )
    except (InspectorError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        clear_context()
        return 1

    ok = True
    try:
        info = await client.initialize()
        print(format_server_info(info))

        for kind in ns.list:
            await list_capabilities(client, kind)

        if ns.call:
            ok = await call_tool(client, ns.call, raw_args)

        if ns.prompt:
            result = await client.get_prompt(ns.prompt, raw_args or None)
            print()
            print(format_prompt_result(ns.prompt, result))

        if ns.read:
            result = await client.read_resource(ns.read)
            print()
            print(format_resource_result(ns.read, result))
    except (InspectorError, ValueError) as e:
        logger.debug("Command failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        ok = False
    finally:
        await client.shutdown()
        if ns.logs:
            logs = client.get_logs()
            print(f"\nLogs ({len(logs)}):")
            for line in logs:
                print(f"  {line}")
        clear_context()

    return 0 if ok else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)

    if (ns.utcp is None) == (ns.command is None):
        parser.error("either --utcp PATH or a server COMMAND is required")

    settings = get_settings()
    log_level = "DEBUG" if ns.debug or settings.debug else settings.log_level
    setup_logging(log_level, json_output=settings.json_logs)

    return asyncio.run(run(ns, settings))


if __name__ == "__main__":
    sys.exit(main())
