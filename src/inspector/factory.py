"""Backend selection.

The caller decides once, at construction time, which backend to use;
everything afterwards goes through the CapabilityClient interface.
"""

from pathlib import Path
from typing import Optional, Sequence

from shared.capability import CapabilityClient
from shared.config import Settings, get_settings
from shared.logging import get_logger
from mcp_client.client import McpClient
from utcp_client.client import UtcpClient

logger = get_logger(__name__)


async def open_client(
    command: Optional[str] = None,
    args: Sequence[str] = (),
    manual_path: Optional[str | Path] = None,
    settings: Optional[Settings] = None
) -> CapabilityClient:
    """
    Build a ready-to-initialize client for one backend.

    Args:
        command: Executable of an MCP server to spawn
        args: Arguments for the MCP server
        manual_path: Path of a UTCP manual to load instead
        settings: Application settings (cached settings by default)

    Returns:
        A started client; the caller must initialize() and shutdown() it

    Raises:
        ValueError: Unless exactly one of command and manual_path is given
        TransportError: If the MCP server cannot be spawned
        ManifestError: If the UTCP manual cannot be loaded
    """
    if (command is None) == (manual_path is None):
        raise ValueError("Either an MCP server command or a UTCP manual path must be given")

    settings = settings or get_settings()

    if manual_path is not None:
        logger.debug("Opening UTCP manual", path=str(manual_path))
        return await UtcpClient.from_path(manual_path, settings=settings.executor)

    logger.debug("Spawning MCP server", command=command, args=list(args))
    return await McpClient.spawn(command, list(args), settings=settings.rpc)
