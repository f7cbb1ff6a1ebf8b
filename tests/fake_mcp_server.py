"""Minimal MCP server used by the client tests.

Speaks newline-delimited JSON-RPC on stdin/stdout. Some tools answer
late, out of order, never, or after writing junk, so the client's
correlation logic can be exercised against a real process.
"""

import json
import sys
import threading

_write_lock = threading.Lock()
_notifications: list[str] = []
_handshake: dict = {}


def send(message):
    with _write_lock:
        sys.stdout.write(json.dumps(message) + "\n")
        sys.stdout.flush()


def send_raw(text):
    with _write_lock:
        sys.stdout.write(text + "\n")
        sys.stdout.flush()


def respond(request_id, result):
    send({"jsonrpc": "2.0", "id": request_id, "result": result})


def respond_error(request_id, code, message, data=None):
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    send({"jsonrpc": "2.0", "id": request_id, "error": error})


def text_result(text, is_error=False):
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


TOOLS = [
    {
        "name": "echo",
        "description": "Echo the message back",
        "inputSchema": {
            "type": "object",
            "properties": {"message": {"type": "string"}},
            "required": ["message"],
        },
    },
    {
        "name": "slow",
        "description": "Echo after a delay",
        "inputSchema": {
            "type": "object",
            "properties": {"message": {"type": "string"}, "delay": {"type": "number"}},
        },
    },
]


def call_tool(request_id, params):
    name = params.get("name")
    args = params.get("arguments") or {}

    if name == "echo":
        respond(request_id, text_result(str(args.get("message", ""))))
    elif name == "slow":
        delay = float(args.get("delay", 0.1))
        timer = threading.Timer(
            delay, respond, args=(request_id, text_result(str(args.get("message", ""))))
        )
        timer.daemon = True
        timer.start()
    elif name == "mixed":
        respond(request_id, {
            "content": [
                {"type": "text", "text": "first"},
                {"type": "image", "data": "aGVsbG8=", "mimeType": "image/png"},
                {"type": "resource", "resource": {"uri": "file:///a.txt", "text": "inner"}},
                {"type": "text", "text": "last"},
            ]
        })
    elif name == "noise":
        send_raw("this is not json")
        send_raw("[1, 2, 3]")
        send_raw('{"jsonrpc": "2.0"}')
        respond(request_id, text_result("after noise"))
    elif name == "notify":
        send({
            "jsonrpc": "2.0",
            "method": "notifications/message",
            "params": {"level": "info", "data": "hello"},
        })
        respond(request_id, text_result("notified"))
    elif name == "log":
        sys.stderr.write(f"log: {args.get('message', '')}\n")
        sys.stderr.flush()
        respond(request_id, text_result("logged"))
    elif name == "duplicate":
        respond(request_id, text_result("one"))
        respond(request_id, text_result("two"))
    elif name == "never":
        pass
    elif name == "crash":
        sys.stdout.flush()
        sys.exit(1)
    else:
        respond_error(request_id, -32602, f"Unknown tool: {name}")


def handle(request):
    method = request.get("method")
    request_id = request.get("id")
    params = request.get("params") or {}

    if request_id is None:
        _notifications.append(method)
        return

    if method == "initialize":
        _handshake.update(params)
        respond(request_id, {
            "protocolVersion": params.get("protocolVersion"),
            "capabilities": {"tools": {}, "prompts": {}, "resources": {}},
            "serverInfo": {"name": "fake-server", "version": "9.9.9"},
        })
    elif method == "tools/list":
        respond(request_id, {"tools": TOOLS})
    elif method == "tools/call":
        call_tool(request_id, params)
    elif method == "prompts/list":
        respond(request_id, {"prompts": [{
            "name": "greet",
            "description": "Greeting prompt",
            "arguments": [{"name": "who", "required": True}],
        }]})
    elif method == "prompts/get":
        who = (params.get("arguments") or {}).get("who", "nobody")
        respond(request_id, {
            "description": "Greeting",
            "messages": [{"role": "user", "content": {"type": "text", "text": f"Hello {who}"}}],
        })
    elif method == "resources/list":
        respond(request_id, {"resources": [
            {"uri": "file:///readme.md", "name": "readme", "mimeType": "text/markdown"},
        ]})
    elif method == "resources/read":
        respond(request_id, {"contents": [
            {"uri": params.get("uri"), "mimeType": "text/markdown", "text": "# Readme"},
        ]})
    elif method == "test/handshake":
        respond(request_id, {"params": _handshake, "notifications": list(_notifications)})
    elif method == "test/bad_result":
        respond(request_id, {"tools": "not a list"})
    else:
        respond_error(request_id, -32601, "Method not found", data={"method": method})


def main():
    sys.stderr.write("fake server started\n")
    sys.stderr.flush()

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        handle(json.loads(line))


if __name__ == "__main__":
    main()
