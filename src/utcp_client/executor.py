"""Tool executor for UTCP manuals.

Turns a tool's call template plus call-time arguments into an HTTP
request or a sequence of CLI commands, and wraps what comes back as a
ToolCallResult. Every template string goes through the same variable
substitution, secrets included.
"""

import asyncio
import json
from typing import Any, Optional

import httpx

from shared.config import ExecutorSettings, get_settings
from shared.errors import ExecutionError
from shared.logging import get_logger
from shared.models import ToolCallResult
from utcp_client.manual import (
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    CliCallTemplate,
    HttpCallTemplate,
    UtcpTool,
)
from utcp_client.template import TemplateProcessor, substitute_arguments

logger = get_logger(__name__)


class ToolExecutor:
    """
    Executes UTCP tools over HTTP or as local commands.

    One httpx.AsyncClient is shared by all calls; it holds no per-call
    state, so concurrent calls are safe.
    """

    def __init__(
        self,
        template_processor: TemplateProcessor,
        settings: Optional[ExecutorSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self.templates = template_processor
        self.settings = settings or get_settings().executor
        self._http_client = http_client or httpx.AsyncClient(
            timeout=self.settings.http_timeout
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._http_client.is_closed:
            await self._http_client.aclose()

    async def execute_tool(
        self,
        tool: UtcpTool,
        arguments: Optional[dict[str, Any]] = None
    ) -> ToolCallResult:
        """
        Execute a tool with the given arguments.

        Raises:
            SubstitutionError: If a template references an unknown variable
            ExecutionError: If the request or command cannot be carried out
        """
        template = tool.tool_call_template
        if isinstance(template, HttpCallTemplate):
            return await self.execute_http(template, arguments)
        return await self.execute_cli(template, arguments)

    async def execute_http(
        self,
        template: HttpCallTemplate,
        arguments: Optional[dict[str, Any]] = None
    ) -> ToolCallResult:
        """Run an HTTP call template; any non-2xx status marks the result as an error."""
        url = self.templates.substitute(template.url)
        url = substitute_arguments(url, arguments)

        headers: dict[str, str] = {}
        params: dict[str, str] = {}
        auth = self._apply_auth(template.auth, headers, params) if template.auth else None
        headers.update(self.templates.substitute_map(template.headers))

        request_kwargs: dict[str, Any] = {"headers": headers}
        if params:
            request_kwargs["params"] = params
        if auth is not None:
            request_kwargs["auth"] = auth
        if template.body_field and arguments is not None and template.body_field in arguments:
            # A null argument is sent as a JSON null body
            request_kwargs["content"] = json.dumps(arguments[template.body_field])
            if not any(name.lower() == "content-type" for name in headers):
                headers["Content-Type"] = "application/json"

        method = template.http_method.value
        logger.debug("Executing HTTP tool", method=method, url=url)

        try:
            response = await self._http_client.request(method, url, **request_kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ExecutionError(f"HTTP request failed: {method} {url}: {e}") from e

        is_error = not response.is_success
        logger.debug("HTTP tool finished", url=url, status=response.status_code)
        return ToolCallResult.from_text(response.text, is_error=is_error)

    def _apply_auth(
        self,
        auth: ApiKeyAuth | BearerAuth | BasicAuth,
        headers: dict[str, str],
        params: dict[str, str]
    ) -> Optional[httpx.Auth]:
        """Fill in auth headers or query parameters; returns an httpx auth for basic."""
        if isinstance(auth, ApiKeyAuth):
            key = self.templates.substitute(auth.api_key)
            if auth.header_name:
                headers[auth.header_name] = key
            elif auth.query_param_name:
                params[auth.query_param_name] = key
            else:
                headers["Authorization"] = f"ApiKey {key}"
            return None

        if isinstance(auth, BearerAuth):
            token = self.templates.substitute(auth.token)
            headers["Authorization"] = f"Bearer {token}"
            return None

        username = self.templates.substitute(auth.username)
        password = self.templates.substitute(auth.password)
        return httpx.BasicAuth(username, password)

    async def execute_cli(
        self,
        template: CliCallTemplate,
        arguments: Optional[dict[str, Any]] = None
    ) -> ToolCallResult:
        """
        Run a CLI call template.

        Without append_to_final_output only the first command runs and its
        exit status decides the error flag. With it, every command runs,
        their stdout is joined with newlines, and the result is always
        reported as successful.
        """
        outputs: list[str] = []

        for command_template in template.commands:
            command = self.templates.substitute(command_template)
            command = substitute_arguments(command, arguments)

            parts = command.split()
            if not parts:
                continue

            stdout, stderr, returncode = await self._run_command(parts)

            if not template.append_to_final_output:
                text = f"{stdout}\nSTDERR:\n{stderr}" if stderr else stdout
                return ToolCallResult.from_text(text, is_error=returncode != 0)

            outputs.append(stdout)

        return ToolCallResult.from_text("\n".join(outputs), is_error=False)

    async def _run_command(self, parts: list[str]) -> tuple[str, str, int]:
        """
        Run one command and capture its output.

        Returns:
            Tuple of (stdout, stderr, return_code)
        """
        logger.debug("Running command", command=parts)

        try:
            proc = await asyncio.create_subprocess_exec(
                *parts,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise ExecutionError(f"Failed to execute command: {' '.join(parts)}: {e}") from e

        timeout = self.settings.cli_timeout
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise ExecutionError(f"Command timed out after {timeout:g}s: {' '.join(parts)}") from None

        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            proc.returncode or 0
        )
