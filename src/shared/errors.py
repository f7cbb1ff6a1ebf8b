"""Error taxonomy for mcpeek.

Every failure surfaced to a caller is an InspectorError subclass.
Local, recoverable problems (a single unparsable line, a late response)
are logged and absorbed instead of raised.
"""

from typing import Any, Optional


class InspectorError(Exception):
    """Base exception for all mcpeek errors."""
    pass


class TransportError(InspectorError):
    """Spawning the server process or using its pipes failed."""
    pass


class TransportClosedError(TransportError):
    """The server process is gone; no more requests can be answered."""
    pass


class ProtocolError(InspectorError):
    """A message or result did not have the expected shape."""
    pass


class RpcError(InspectorError):
    """The server answered a request with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"RPC error: {message} (code: {code})")
        self.code = code
        self.message = message
        self.data = data


class RequestTimeoutError(InspectorError):
    """No response arrived for a request before its deadline."""

    def __init__(self, method: str, request_id: int, timeout: float) -> None:
        super().__init__(
            f"Request '{method}' (id {request_id}) timed out after {timeout:g}s"
        )
        self.method = method
        self.request_id = request_id
        self.timeout = timeout


class ManifestError(InspectorError):
    """The UTCP manual could not be read or is invalid."""
    pass


class SubstitutionError(InspectorError):
    """A ${NAME} placeholder could not be resolved."""

    def __init__(self, variable: str, template: Optional[str] = None) -> None:
        super().__init__(f"Variable ${{{variable}}} not found")
        self.variable = variable
        self.template = template


class ExecutionError(InspectorError):
    """An HTTP request or CLI command could not be carried out."""
    pass


class ToolNotFoundError(InspectorError):
    """The requested tool is not defined."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool '{name}' not found")
        self.name = name


class UnsupportedOperationError(InspectorError):
    """The backend does not offer this operation at all."""
    pass
