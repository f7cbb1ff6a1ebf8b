"""MCP client over a stdio subprocess.

Many calls may be in flight at once on the same pipes. Each request is
registered with the correlator under a fresh id, written as one line,
and its caller waits on its own future until the stdout reader delivers
the matching response or the deadline passes.
"""

import asyncio
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from shared.capability import CapabilityClient
from shared.config import RpcSettings, get_settings
from shared.errors import (
    ProtocolError,
    RequestTimeoutError,
    RpcError,
    TransportClosedError,
)
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
from mcp_client.correlator import RequestCorrelator
from mcp_client.protocol import (
    Implementation,
    InitializeParams,
    InitializeResult,
    JsonRpcRequest,
    JsonRpcResponse,
    ListPromptsResult,
    ListResourcesResult,
    ListToolsResult,
    parse_message,
)
from mcp_client.transport import StdioTransport

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# How long shutdown() waits for the reader tasks to see end-of-stream
READER_SHUTDOWN_TIMEOUT = 5.0


class McpClient(CapabilityClient):
    """
    Capability client for an MCP server speaking JSON-RPC over stdio.

    Usage:
        async with await McpClient.spawn("python", ["server.py"]) as client:
            await client.initialize()
            tools = await client.list_tools()

    Two background tasks live as long as the process: one routes stdout
    lines to waiting callers, the other collects stderr lines for
    get_logs(). Both end when the process goes away.
    """

    def __init__(
        self,
        command: str,
        args: Optional[list[str]] = None,
        env: Optional[dict[str, str]] = None,
        settings: Optional[RpcSettings] = None,
        transport: Optional[StdioTransport] = None
    ) -> None:
        """
        Args:
            command: Executable that starts the server
            args: Arguments for the executable
            env: Extra environment variables for the server process
            settings: RPC settings; defaults to the application settings
            transport: Pre-built transport, mainly for tests
        """
        self.settings = settings or get_settings().rpc
        self.transport = transport or StdioTransport(command, args, env)
        self.correlator = RequestCorrelator()
        self.inbound: asyncio.Queue = asyncio.Queue(maxsize=self.settings.inbound_queue_size)

        self._logs = LineBuffer()
        self._server_info: Optional[ServerInfo] = None
        self._tasks: list[asyncio.Task] = []
        self._closed = False

    @classmethod
    async def spawn(
        cls,
        command: str,
        args: Optional[list[str]] = None,
        **kwargs: Any
    ) -> "McpClient":
        """Create a client and start its server process."""
        client = cls(command, args, **kwargs)
        await client.start()
        return client

    async def start(self) -> None:
        """
        Launch the server process and its reader tasks.

        Raises:
            TransportError: If the process cannot be spawned
        """
        await self.transport.start()
        self._closed = False
        self._tasks = [
            asyncio.create_task(self._read_stdout(), name="mcp-stdout-reader"),
            asyncio.create_task(self._read_stderr(), name="mcp-stderr-reader"),
        ]

    async def __aenter__(self) -> "McpClient":
        if not self._tasks:
            await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    @property
    def is_closed(self) -> bool:
        return self._closed

    # Reader tasks

    async def _read_stdout(self) -> None:
        """Route every stdout line until the server's stdout closes."""
        try:
            while True:
                try:
                    line = await self.transport.read_stdout_line()
                except ValueError as e:
                    logger.warning("Dropping oversized message", error=str(e))
                    continue
                except OSError as e:
                    logger.error("Error reading from server", error=str(e))
                    break

                if line is None:
                    logger.debug("Server stdout closed")
                    break

                line = line.strip()
                if line:
                    await self._dispatch(line)
        finally:
            self._closed = True
            await self.correlator.fail_all(TransportClosedError("Server connection closed"))

    async def _dispatch(self, line: str) -> None:
        logger.debug("Received", message=line)

        try:
            message = parse_message(line)
        except ProtocolError as e:
            logger.warning("Failed to parse message", error=str(e), message=line[:200])
            return

        if isinstance(message, JsonRpcResponse):
            request_id = message.numeric_id
            if request_id is not None and await self.correlator.resolve(request_id, message):
                return
            logger.debug("Discarding response without a pending request", id=message.id)
            return

        if self.inbound.full():
            dropped = self.inbound.get_nowait()
            logger.debug("Inbound queue full, dropping oldest", method=dropped.method)
        self.inbound.put_nowait(message)

    async def _read_stderr(self) -> None:
        """Collect non-empty stderr lines until the stream closes."""
        while True:
            try:
                line = await self.transport.read_stderr_line()
            except ValueError:
                continue
            except OSError as e:
                logger.error("Error reading stderr from server", error=str(e))
                break

            if line is None:
                logger.debug("Server stderr closed")
                break

            if line.strip():
                self._logs.append(line)

    # Request plumbing

    async def _send(self, request: JsonRpcRequest) -> None:
        line = request.to_line()
        logger.debug("Sending", message=line)
        await self.transport.write_line(line)

    async def _call(self, method: str, params: Any = None) -> Any:
        """
        Send a request and wait for its result.

        Raises:
            TransportClosedError: If the server is gone
            RequestTimeoutError: If no response arrives in time
            RpcError: If the server answers with an error object
            ProtocolError: If the response carries no result
        """
        if self._closed:
            raise TransportClosedError("Server connection closed")

        request_id = self.correlator.next_id()
        call = await self.correlator.register(request_id, method)

        try:
            await self._send(JsonRpcRequest(id=request_id, method=method, params=params))
        except BaseException:
            await self.correlator.discard(request_id)
            raise

        timeout = self.settings.request_timeout
        try:
            response: JsonRpcResponse = await asyncio.wait_for(call.future, timeout=timeout)
        except asyncio.TimeoutError:
            await self.correlator.discard(request_id)
            logger.warning("Request timed out", method=method, id=request_id)
            raise RequestTimeoutError(method, request_id, timeout) from None
        except BaseException:
            # Cancelled callers give up their slot too
            await self.correlator.discard(request_id)
            raise

        if response.error is not None:
            raise RpcError(response.error.code, response.error.message, response.error.data)

        if response.result is None:
            raise ProtocolError(f"Response to '{method}' is missing the result field")

        return response.result

    def _parse(self, model: type[ModelT], result: Any, method: str) -> ModelT:
        try:
            return model.model_validate(result)
        except ValidationError as e:
            raise ProtocolError(f"Unexpected result for '{method}': {e}") from e

    # Capability interface

    async def initialize(self) -> ServerInfo:
        """
        Run the MCP handshake.

        Sends initialize, stores the server identity, then announces
        readiness with the notifications/initialized notification.
        """
        params = InitializeParams(
            protocol_version=self.settings.protocol_version,
            client_info=Implementation(
                name=self.settings.client_name,
                version=self.settings.client_version
            )
        )
        result = await self._call("initialize", params.model_dump(by_alias=True, exclude_none=True))
        initialized = self._parse(InitializeResult, result, "initialize")

        self._server_info = initialized.to_server_info()
        await self._send(JsonRpcRequest.notification("notifications/initialized"))

        logger.info(
            "MCP server initialized",
            server=self._server_info.name,
            version=self._server_info.version,
            protocol_version=self._server_info.protocol_version
        )
        return self._server_info

    async def list_tools(self) -> list[ToolDescriptor]:
        result = await self._call("tools/list")
        return self._parse(ListToolsResult, result, "tools/list").tools

    async def call_tool(
        self,
        name: str,
        arguments: Optional[dict[str, Any]] = None
    ) -> ToolCallResult:
        params: dict[str, Any] = {"name": name}
        if arguments is not None:
            params["arguments"] = arguments

        result = await self._call("tools/call", params)
        return self._parse(ToolCallResult, result, "tools/call")

    async def list_prompts(self) -> list[PromptDescriptor]:
        result = await self._call("prompts/list")
        return self._parse(ListPromptsResult, result, "prompts/list").prompts

    async def get_prompt(
        self,
        name: str,
        arguments: Optional[dict[str, str]] = None
    ) -> PromptResult:
        params: dict[str, Any] = {"name": name}
        if arguments is not None:
            params["arguments"] = arguments

        result = await self._call("prompts/get", params)
        return self._parse(PromptResult, result, "prompts/get")

    async def list_resources(self) -> list[ResourceDescriptor]:
        result = await self._call("resources/list")
        return self._parse(ListResourcesResult, result, "resources/list").resources

    async def read_resource(self, uri: str) -> ResourceReadResult:
        result = await self._call("resources/read", {"uri": uri})
        return self._parse(ResourceReadResult, result, "resources/read")

    def get_server_info(self) -> Optional[ServerInfo]:
        return self._server_info

    def get_logs(self) -> list[str]:
        return self._logs.drain()

    async def shutdown(self) -> None:
        """Kill the server process and wait for both readers to finish."""
        self._closed = True
        await self.transport.terminate()

        tasks = [t for t in self._tasks if not t.done()]
        if tasks:
            _, still_running = await asyncio.wait(tasks, timeout=READER_SHUTDOWN_TIMEOUT)
            for task in still_running:
                task.cancel()

        await self.correlator.fail_all(TransportClosedError("Client shut down"))
