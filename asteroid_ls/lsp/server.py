"""
asteroid_ls.lsp.server - Asteroid Language Server

Wires the JSON-RPC transport to the analyzer and the query providers.

Every didOpen/didChange/didSave re-tokenizes the whole buffer, replaces
the document's entry in the DocumentStore and publishes a fresh list of
diagnostics. Queries then read the stored symbols and, for hover and
definition, the buffer text.

Features:
- Completion (keywords, builtins, system modules, document symbols)
- Hover for keywords, builtins and document symbols
- Go to definition within the document
- Document outline
- Diagnostics for unterminated strings and malformed numbers

Usage:
    The server is started via `asteroid-ls lsp` and talks over stdio.
"""

import os
import sys
import traceback
from dataclasses import dataclass, field
from typing import Any, Optional

from asteroid_ls import __version__
from asteroid_ls.analysis import DocumentStore, analyze_document
from asteroid_ls.config import SETTINGS_SECTION, ServerConfig
from asteroid_ls.lsp import providers
from asteroid_ls.lsp.protocol import (
    JsonRpcProtocol,
    TextDocumentSyncKind,
    uri_to_path,
)


def _offset_at(content: str, line: int, character: int) -> int:
    """Offset of a (line, character) position, clamped to the text."""
    lines = content.split("\n")
    if line >= len(lines):
        return len(content)
    offset = sum(len(text) + 1 for text in lines[:line])
    return offset + min(character, len(lines[line]))


@dataclass
class TextDocument:
    """An open buffer as last reported by the client."""

    uri: str
    language_id: str
    version: int
    content: str

    @property
    def path(self) -> str:
        return uri_to_path(self.uri)

    def apply_change(self, change: dict[str, Any]) -> None:
        """Apply one contentChanges entry, whole-text or ranged."""
        text = change.get("text", "")
        range_ = change.get("range")
        if range_ is None:
            self.content = text
            return

        start = range_["start"]
        end = range_["end"]
        start_offset = _offset_at(self.content, start["line"], start["character"])
        end_offset = _offset_at(self.content, end["line"], end["character"])
        self.content = self.content[:start_offset] + text + self.content[end_offset:]


def _text_position(params: dict[str, Any]) -> tuple[str, int, int]:
    uri = params.get("textDocument", {}).get("uri", "")
    position = params.get("position", {})
    return uri, position.get("line", 0), position.get("character", 0)


@dataclass
class AsteroidLanguageServer:
    """Language Server Protocol front end for Asteroid source files."""

    protocol: JsonRpcProtocol = field(default_factory=JsonRpcProtocol)

    # Open buffers: uri -> TextDocument
    documents: dict[str, TextDocument] = field(default_factory=dict)

    # Analysis results, kept after a document closes
    store: DocumentStore = field(default_factory=DocumentStore)

    config: ServerConfig = field(default_factory=ServerConfig)

    # Explicit settings file; otherwise one is searched for from the root
    config_path: Optional[str] = None

    # Server state
    initialized: bool = False
    shutdown_requested: bool = False

    # Client capabilities seen at initialize
    supports_configuration_registration: bool = False
    supports_workspace_folders: bool = False

    root_path: Optional[str] = None

    # Logging. log_file_path is set only for a file the server opened
    # itself from the log_file setting; a file handed in by start_server
    # is left alone.
    log_file: Any = None
    log_file_path: Optional[str] = None

    def __post_init__(self):
        self.protocol.log = self._log
        self._register_handlers()

    def _log(self, message: str) -> None:
        """Log to stderr (stdout carries the protocol) and the log file."""
        if self.log_file:
            self.log_file.write(f"{message}\n")
            self.log_file.flush()
        print(f"[asteroid-lsp] {message}", file=sys.stderr)
        sys.stderr.flush()

    def _register_handlers(self) -> None:
        requests = {
            "initialize": self._handle_initialize,
            "shutdown": self._handle_shutdown,
            "textDocument/completion": self._handle_completion,
            "completionItem/resolve": self._handle_completion_resolve,
            "textDocument/hover": self._handle_hover,
            "textDocument/definition": self._handle_definition,
            "textDocument/documentSymbol": self._handle_document_symbol,
        }
        notifications = {
            "initialized": self._handle_initialized,
            "exit": self._handle_exit,
            "textDocument/didOpen": self._handle_did_open,
            "textDocument/didChange": self._handle_did_change,
            "textDocument/didClose": self._handle_did_close,
            "textDocument/didSave": self._handle_did_save,
            "workspace/didChangeConfiguration": self._handle_did_change_configuration,
        }
        for method, handler in requests.items():
            self.protocol.register_request_handler(method, handler)
        for method, handler in notifications.items():
            self.protocol.register_notification_handler(method, handler)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        self._log("Received initialize request")

        root_uri = params.get("rootUri")
        if root_uri:
            self.root_path = uri_to_path(root_uri)
        else:
            self.root_path = params.get("rootPath")
        self._log(f"Workspace root: {self.root_path}")

        capabilities = params.get("capabilities") or {}
        workspace = capabilities.get("workspace") or {}
        self.supports_workspace_folders = bool(workspace.get("workspaceFolders"))
        self.supports_configuration_registration = bool(
            (workspace.get("didChangeConfiguration") or {}).get("dynamicRegistration")
        )

        self._load_config(params.get("initializationOptions"))

        result: dict[str, Any] = {
            "capabilities": {
                "textDocumentSync": {
                    "openClose": True,
                    "change": TextDocumentSyncKind.FULL,
                    "save": {"includeText": True},
                },
                "completionProvider": {
                    "triggerCharacters": [".", "@", " "],
                    "resolveProvider": True,
                },
                "hoverProvider": True,
                "definitionProvider": True,
                "documentSymbolProvider": True,
            },
            "serverInfo": {"name": "asteroid-lsp", "version": __version__},
        }
        if self.supports_workspace_folders:
            result["capabilities"]["workspace"] = {
                "workspaceFolders": {"supported": True}
            }
        return result

    def _handle_initialized(self, params: dict[str, Any]) -> None:
        self._log("Server initialized")
        self.initialized = True

        if self.supports_configuration_registration:
            self.protocol.send_request(
                "client/registerCapability",
                {
                    "registrations": [
                        {
                            "id": "asteroid-configuration",
                            "method": "workspace/didChangeConfiguration",
                        }
                    ]
                },
                callback=self._on_registration_response,
            )

    def _on_registration_response(self, result: Any, error: Any) -> None:
        if error is not None:
            self._log(f"Configuration registration failed: {error.get('message')}")

    def _handle_shutdown(self, params: dict[str, Any]) -> None:
        self._log("Shutdown requested")
        self.shutdown_requested = True
        return None

    def _handle_exit(self, params: dict[str, Any]) -> None:
        self._log("Exit notification received")
        sys.exit(0 if self.shutdown_requested else 1)

    # =========================================================================
    # Configuration
    # =========================================================================

    def _load_config(self, options: Optional[dict[str, Any]]) -> None:
        """Apply the workspace settings file, then the client's options."""
        try:
            if self.config_path:
                self.config = ServerConfig.load(self.config_path)
            elif self.root_path and os.path.isdir(self.root_path):
                self.config = ServerConfig.discover(self.root_path)
        except (OSError, ValueError) as e:
            self._log(f"Error loading settings file: {e}")

        try:
            self.config = self.config.updated(options)
        except ValueError as e:
            self._log(f"Ignoring initializationOptions: {e}")

        self._open_log_file()
        self._log(f"Comment lead: {self.config.comment_lead}")

    def _open_log_file(self) -> None:
        """Make the log file follow the log_file setting."""
        if self.log_file is not None and self.log_file_path is None:
            return
        path = self.config.log_file
        if path == self.log_file_path:
            return

        self._close_log_file()
        if not path:
            return
        try:
            self.log_file = open(path, "a", encoding="utf-8")
            self.log_file_path = path
        except OSError as e:
            self._log(f"Cannot open log file {path}: {e}")

    def _close_log_file(self) -> None:
        if self.log_file_path is None:
            return
        self.log_file.close()
        self.log_file = None
        self.log_file_path = None

    def _handle_did_change_configuration(self, params: dict[str, Any]) -> None:
        settings = params.get("settings")
        if not isinstance(settings, dict) or not settings.get(SETTINGS_SECTION):
            return

        try:
            self.config = self.config.updated(settings[SETTINGS_SECTION])
        except ValueError as e:
            self._log(f"Ignoring configuration change: {e}")
            return

        self._log("Configuration changed, re-analyzing open documents")
        self._open_log_file()
        for doc in self.documents.values():
            self._analyze(doc)

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    def _handle_did_open(self, params: dict[str, Any]) -> None:
        text_document = params.get("textDocument", {})
        doc = TextDocument(
            uri=text_document.get("uri", ""),
            language_id=text_document.get("languageId", "asteroid"),
            version=text_document.get("version", 0),
            content=text_document.get("text", ""),
        )
        self._log(f"Document opened: {doc.uri}")
        self.documents[doc.uri] = doc
        self._analyze(doc)

    def _handle_did_change(self, params: dict[str, Any]) -> None:
        text_document = params.get("textDocument", {})
        uri = text_document.get("uri", "")

        doc = self.documents.get(uri)
        if doc is None:
            self._log(f"Warning: didChange for unknown document: {uri}")
            return

        for change in params.get("contentChanges", []):
            doc.apply_change(change)
        doc.version = text_document.get("version", doc.version)

        self._analyze(doc)

    def _handle_did_close(self, params: dict[str, Any]) -> None:
        uri = params.get("textDocument", {}).get("uri", "")
        self._log(f"Document closed: {uri}")

        self.documents.pop(uri, None)
        self._publish_diagnostics(uri, [])

    def _handle_did_save(self, params: dict[str, Any]) -> None:
        uri = params.get("textDocument", {}).get("uri", "")
        text = params.get("text")

        doc = self.documents.get(uri)
        if doc is not None and text is not None:
            doc.content = text
            self._analyze(doc)

    # =========================================================================
    # Language Features
    # =========================================================================

    def _handle_completion(self, params: dict[str, Any]) -> dict[str, Any]:
        uri, line, character = _text_position(params)
        try:
            items = providers.completion(self.store, uri, line, character)
        except Exception as e:
            self._log(f"Completion error: {e}")
            items = []
        return {"isIncomplete": False, "items": items}

    def _handle_completion_resolve(self, params: dict[str, Any]) -> dict[str, Any]:
        return params

    def _handle_hover(self, params: dict[str, Any]) -> Optional[dict[str, Any]]:
        uri, line, character = _text_position(params)
        doc = self.documents.get(uri)
        if doc is None:
            return None
        try:
            return providers.hover(self.store, uri, doc.content, line, character)
        except Exception as e:
            self._log(f"Hover error: {e}")
            return None

    def _handle_definition(self, params: dict[str, Any]) -> Optional[dict[str, Any]]:
        uri, line, character = _text_position(params)
        doc = self.documents.get(uri)
        if doc is None:
            return None
        try:
            return providers.definition(self.store, uri, doc.content, line, character)
        except Exception as e:
            self._log(f"Definition error: {e}")
            return None

    def _handle_document_symbol(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        uri = params.get("textDocument", {}).get("uri", "")
        try:
            return providers.document_symbols(self.store, uri)
        except Exception as e:
            self._log(f"Document symbol error: {e}")
            return []

    # =========================================================================
    # Analysis and Diagnostics
    # =========================================================================

    def _analyze(self, doc: TextDocument) -> None:
        """Re-analyze a buffer and publish its diagnostics."""
        diagnostics = analyze_document(
            self.store, doc.uri, doc.content, self.config.comment_lead
        )
        if not self.config.diagnostics:
            diagnostics = []
        self._publish_diagnostics(doc.uri, [d.to_lsp() for d in diagnostics])

    def _publish_diagnostics(self, uri: str, diagnostics: list[dict[str, Any]]) -> None:
        self.protocol.send_notification(
            "textDocument/publishDiagnostics",
            {"uri": uri, "diagnostics": diagnostics},
        )

    # =========================================================================
    # Main Entry Point
    # =========================================================================

    def run(self) -> None:
        self._log("Asteroid Language Server starting")
        try:
            self.protocol.run()
        except KeyboardInterrupt:
            self._log("Interrupted")
        except Exception as e:
            self._log(f"Server error: {e}")
            traceback.print_exc(file=sys.stderr)
        finally:
            self._log("Server stopped")
            self._close_log_file()


def start_server(
    log_path: Optional[str] = None, config_path: Optional[str] = None
) -> None:
    """
    Run the language server on stdio until the client disconnects.

    Args:
        log_path: Optional file that receives a copy of the log.
        config_path: Settings file to use instead of searching the
            workspace for one. The client's initializationOptions are
            applied on top.
    """
    log_file = open(log_path, "w", encoding="utf-8") if log_path else None

    try:
        server = AsteroidLanguageServer(config_path=config_path)
        if log_file:
            server.log_file = log_file
        server.run()
    finally:
        if log_file:
            log_file.close()
