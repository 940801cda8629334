"""
asteroid_ls.lsp.protocol - JSON-RPC 2.0 transport for the language server

Messages travel over stdio, each framed with HTTP-style headers:

    Content-Length: <length>\r\n
    \r\n
    <JSON body>

This module handles the framing, dispatches incoming requests and
notifications to registered handlers, sends notifications and requests
to the client, and provides the LSP enums and object builders used by
the server.
"""

import json
import sys
import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Optional, Union

MessageId = Union[int, str]

# =============================================================================
# Errors
# =============================================================================


class ErrorCode(IntEnum):
    """JSON-RPC and LSP error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    SERVER_NOT_INITIALIZED = -32002
    UNKNOWN_ERROR_CODE = -32001


class JsonRpcError(Exception):
    """An error that is reported back to the client as a JSON-RPC error."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": int(self.code), "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


# =============================================================================
# Framing
# =============================================================================


class ProtocolReader:
    """Reads framed JSON messages from a binary stream (stdin by default)."""

    def __init__(self, input_stream=None):
        self.input = input_stream or sys.stdin.buffer
        self._lock = threading.Lock()

    def read_message(self) -> Optional[dict[str, Any]]:
        """
        Read the next message.

        Returns:
            The decoded message, or None at end of stream.

        Raises:
            JsonRpcError: If the headers or the body are malformed.
        """
        with self._lock:
            content_length = self._read_headers()
            if content_length is None:
                return None

            body = self.input.read(content_length)
            if len(body) < content_length:
                return None

            try:
                message = json.loads(body.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise JsonRpcError(ErrorCode.PARSE_ERROR, f"Invalid JSON: {e}") from e

            if not isinstance(message, dict):
                raise JsonRpcError(
                    ErrorCode.INVALID_REQUEST, "Message must be a JSON object"
                )
            return message

    def _read_headers(self) -> Optional[int]:
        """Consume the header block and return its Content-Length."""
        content_length = None

        while True:
            raw = self.input.readline()
            if not raw:
                return None

            header = raw.decode("ascii", errors="replace").strip()
            if not header:
                break

            name, _, value = header.partition(":")
            if name.strip().lower() == "content-length":
                try:
                    content_length = int(value.strip())
                except ValueError:
                    raise JsonRpcError(
                        ErrorCode.PARSE_ERROR, f"Invalid Content-Length: {header}"
                    )

        if content_length is None:
            raise JsonRpcError(ErrorCode.PARSE_ERROR, "Missing Content-Length header")
        return content_length


class ProtocolWriter:
    """Writes framed JSON messages to a binary stream (stdout by default)."""

    def __init__(self, output_stream=None):
        self.output = output_stream or sys.stdout.buffer
        self._lock = threading.Lock()

    def write_message(self, message: dict[str, Any]) -> None:
        body = json.dumps(message, ensure_ascii=False).encode("utf-8")
        header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")

        with self._lock:
            self.output.write(header)
            self.output.write(body)
            self.output.flush()


# =============================================================================
# Dispatch
# =============================================================================


def _ignore(message: str) -> None:
    pass


@dataclass
class JsonRpcProtocol:
    """
    Dispatches incoming messages to handlers and writes the responses.

    Request handlers take the params dict and return the result (or raise
    JsonRpcError). Notification handlers take the params dict and return
    nothing. ``log`` receives a line for every error the protocol absorbs.
    """

    reader: ProtocolReader = field(default_factory=ProtocolReader)
    writer: ProtocolWriter = field(default_factory=ProtocolWriter)
    log: Callable[[str], None] = _ignore

    _request_handlers: dict[str, Callable] = field(default_factory=dict)
    _notification_handlers: dict[str, Callable] = field(default_factory=dict)

    # Outgoing requests awaiting a response: id -> callback(result, error)
    _pending_requests: dict[MessageId, Callable] = field(default_factory=dict)
    _next_id: int = 1
    _id_lock: threading.Lock = field(default_factory=threading.Lock)

    def register_request_handler(
        self, method: str, handler: Callable[[dict], Any]
    ) -> None:
        self._request_handlers[method] = handler

    def register_notification_handler(
        self, method: str, handler: Callable[[dict], None]
    ) -> None:
        self._notification_handlers[method] = handler

    def handle_message(self, message: dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        Handle one decoded message.

        Returns:
            The response to write if the message was a request, else None.
        """
        if "method" not in message:
            if "result" in message or "error" in message:
                self._handle_response(message)
                return None
            return self._make_error_response(
                message.get("id"), ErrorCode.INVALID_REQUEST, "Missing method field"
            )

        method = message["method"]
        params = message.get("params") or {}

        if "id" in message and message["id"] is not None:
            return self._handle_request(message["id"], method, params)

        self._handle_notification(method, params)
        return None

    def _handle_request(
        self, msg_id: MessageId, method: str, params: dict[str, Any]
    ) -> dict[str, Any]:
        handler = self._request_handlers.get(method)
        if handler is None:
            return self._make_error_response(
                msg_id, ErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}"
            )

        try:
            result = handler(params)
        except JsonRpcError as e:
            return self._make_error_response(msg_id, e.code, e.message, e.data)
        except Exception as e:
            self.log(f"Error handling {method}: {e}")
            return self._make_error_response(msg_id, ErrorCode.INTERNAL_ERROR, str(e))

        return {"jsonrpc": "2.0", "id": msg_id, "result": result}

    def _handle_notification(self, method: str, params: dict[str, Any]) -> None:
        handler = self._notification_handlers.get(method)
        if handler is None:
            # $/ notifications are optional; anything else is worth noting
            if not method.startswith("$/"):
                self.log(f"Ignoring unhandled notification: {method}")
            return

        try:
            handler(params)
        except SystemExit:
            raise
        except Exception as e:
            self.log(f"Error handling {method}: {e}")

    def _handle_response(self, message: dict[str, Any]) -> None:
        callback = self._pending_requests.pop(message.get("id"), None)
        if callback is None:
            return
        if "error" in message:
            callback(None, message["error"])
        else:
            callback(message.get("result"), None)

    def _make_error_response(
        self,
        msg_id: Optional[MessageId],
        code: int,
        message: str,
        data: Any = None,
    ) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": msg_id,
            "error": JsonRpcError(code, message, data).to_dict(),
        }

    def send_notification(
        self, method: str, params: Optional[dict[str, Any]] = None
    ) -> None:
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        self.writer.write_message(message)

    def send_request(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        callback: Optional[Callable[[Any, Any], None]] = None,
    ) -> MessageId:
        """Send a request to the client; ``callback`` gets (result, error)."""
        with self._id_lock:
            msg_id = self._next_id
            self._next_id += 1

        message: dict[str, Any] = {"jsonrpc": "2.0", "id": msg_id, "method": method}
        if params is not None:
            message["params"] = params

        if callback is not None:
            self._pending_requests[msg_id] = callback

        self.writer.write_message(message)
        return msg_id

    def run(self) -> None:
        """Read and dispatch messages until the input stream ends."""
        while True:
            try:
                message = self.reader.read_message()
            except JsonRpcError as e:
                self.log(f"Protocol error: {e.message}")
                self.writer.write_message(
                    self._make_error_response(None, e.code, e.message, e.data)
                )
                continue

            if message is None:
                break

            response = self.handle_message(message)
            if response is not None:
                self.writer.write_message(response)


# =============================================================================
# LSP enums
# =============================================================================


class TextDocumentSyncKind(IntEnum):
    NONE = 0
    FULL = 1
    INCREMENTAL = 2


class CompletionItemKind(IntEnum):
    FUNCTION = 3
    VARIABLE = 6
    CLASS = 7
    MODULE = 9
    KEYWORD = 14


class SymbolKind(IntEnum):
    FUNCTION = 12
    VARIABLE = 13
    STRUCT = 23


# =============================================================================
# LSP object builders
# =============================================================================


def make_location(uri: str, range_: dict[str, Any]) -> dict[str, Any]:
    return {"uri": uri, "range": range_}


def make_completion_item(
    label: str,
    kind: CompletionItemKind,
    detail: Optional[str] = None,
) -> dict[str, Any]:
    item: dict[str, Any] = {"label": label, "kind": int(kind)}
    if detail is not None:
        item["detail"] = detail
    return item


def make_hover(
    contents: str, range_: Optional[dict[str, Any]] = None
) -> dict[str, Any]:
    """Create a Hover with Markdown contents."""
    hover: dict[str, Any] = {"contents": {"kind": "markdown", "value": contents}}
    if range_ is not None:
        hover["range"] = range_
    return hover


def make_document_symbol(
    name: str,
    kind: SymbolKind,
    range_: dict[str, Any],
    selection_range: dict[str, Any],
    detail: Optional[str] = None,
) -> dict[str, Any]:
    symbol: dict[str, Any] = {
        "name": name,
        "kind": int(kind),
        "range": range_,
        "selectionRange": selection_range,
    }
    if detail is not None:
        symbol["detail"] = detail
    return symbol


def uri_to_path(uri: str) -> str:
    """Convert a file URI to a path. Other URIs are returned unchanged."""
    if uri.startswith("file://"):
        from urllib.parse import unquote

        path = unquote(uri[7:])
        # file:///C:/... on Windows
        if len(path) > 2 and path[0] == "/" and path[2] == ":":
            path = path[1:]
        return path
    return uri
