"""
asteroid_ls.lsp - Language Server Protocol implementation for Asteroid

This package provides an LSP server for Asteroid, enabling editor
integration for:
- Code completion
- Hover documentation
- Go to definition
- Document outline
- Diagnostics

The LSP server communicates over stdio using JSON-RPC 2.0.
"""

from asteroid_ls.lsp.server import AsteroidLanguageServer

__all__ = ["AsteroidLanguageServer"]
