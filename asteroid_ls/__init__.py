"""
asteroid_ls - Editor language intelligence for the Asteroid language

Subpackages:
- asteroid_ls.analysis: tokenizer, symbol extraction and diagnostics
- asteroid_ls.lsp: Language Server Protocol transport, server and query
  providers

Run the server with ``asteroid-ls lsp``.
"""

__version__ = "0.1.0"
