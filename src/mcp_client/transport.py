"""Line-oriented stdio transport to an MCP server process.

The server runs as a child process. Requests are written to its stdin
one JSON message per line; its stdout and stderr are read line by line
from independent tasks.
"""

import asyncio
import os
from typing import Optional

from shared.errors import TransportClosedError, TransportError
from shared.logging import get_logger

logger = get_logger(__name__)

# asyncio's default of 64 KiB is too small for large tool listings
STREAM_LIMIT = 16 * 1024 * 1024


class StdioTransport:
    """
    Owns a spawned process and its three pipes.

    write_line() is serialized so concurrent writers never interleave
    their bytes. read_stdout_line() and read_stderr_line() each belong to
    a single reader task and return None once the stream has ended.
    """

    def __init__(
        self,
        command: str,
        args: Optional[list[str]] = None,
        env: Optional[dict[str, str]] = None
    ) -> None:
        """
        Args:
            command: Executable that starts the server
            args: Arguments passed to the executable
            env: Extra environment variables layered over os.environ
        """
        self.command = command
        self.args = list(args or [])
        self.env = env
        self._process: Optional[asyncio.subprocess.Process] = None
        self._write_lock = asyncio.Lock()

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    async def start(self) -> None:
        """
        Launch the server process.

        Raises:
            TransportError: If the process cannot be spawned
        """
        if self.is_alive():
            raise TransportError("Transport already running")

        env = {**os.environ, **self.env} if self.env else None
        logger.info("Starting stdio transport", command=self.command, args=self.args)

        try:
            self._process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                limit=STREAM_LIMIT
            )
        except OSError as e:
            raise TransportError(f"Failed to spawn MCP server process '{self.command}': {e}") from e

        logger.debug("Server process started", pid=self._process.pid)

    def is_alive(self) -> bool:
        """Check if the process is running."""
        return self._process is not None and self._process.returncode is None

    async def write_line(self, line: str) -> None:
        """
        Write one newline-terminated line to the server's stdin.

        Raises:
            TransportClosedError: If the process or its stdin is gone
        """
        if self._process is None or self._process.stdin is None:
            raise TransportClosedError("Transport not started")

        data = (line + "\n").encode("utf-8")
        async with self._write_lock:
            if self._process.stdin.is_closing():
                raise TransportClosedError("Server stdin is closed")
            try:
                self._process.stdin.write(data)
                await self._process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as e:
                raise TransportClosedError(f"Server stdin is closed: {e}") from e

    async def read_stdout_line(self) -> Optional[str]:
        """Read the next stdout line, or None at end-of-stream."""
        return await self._read_line(self._process.stdout if self._process else None)

    async def read_stderr_line(self) -> Optional[str]:
        """Read the next stderr line, or None at end-of-stream."""
        return await self._read_line(self._process.stderr if self._process else None)

    async def _read_line(self, stream: Optional[asyncio.StreamReader]) -> Optional[str]:
        if stream is None:
            return None
        raw = await stream.readline()
        if not raw:
            return None
        return raw.decode("utf-8", errors="replace").rstrip("\r\n")

    async def terminate(self) -> None:
        """Kill the server process and reap it. Safe to call repeatedly."""
        process = self._process
        if process is None:
            return

        if process.returncode is None:
            if process.stdin is not None and not process.stdin.is_closing():
                process.stdin.close()
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            logger.info("Stdio transport stopped", pid=process.pid, returncode=process.returncode)
