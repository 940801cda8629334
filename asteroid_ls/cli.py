"""
asteroid_ls.cli - Asteroid language tools command line

Subcommands:

- asteroid-ls lsp              Start the language server on stdio
- asteroid-ls check FILE...    Report diagnostics for Asteroid files
- asteroid-ls symbols FILE     Print the symbol outline and imports of a file
"""

import argparse
import sys
import traceback
from typing import Optional

from asteroid_ls import __version__
from asteroid_ls.analysis import DocumentStore, analyze_document
from asteroid_ls.config import ServerConfig

# "--" cannot be passed as an option value, so comment leads are named
COMMENT_STYLES = {"dash": "--", "percent": "%"}


def _read_source(path: str) -> Optional[str]:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        print(f"Error: cannot read {path}: {e}", file=sys.stderr)
        return None


def _resolve_config(args: argparse.Namespace) -> ServerConfig:
    """Settings file (explicit or discovered), then command line flags."""
    if args.config:
        config = ServerConfig.load(args.config)
    else:
        config = ServerConfig.discover()
    if getattr(args, "comments", None):
        config = config.updated({"commentLead": COMMENT_STYLES[args.comments]})
    return config


def cmd_lsp(args: argparse.Namespace) -> int:
    """Start the Language Server Protocol server."""
    from asteroid_ls.lsp.server import start_server

    if args.config:
        # Report a broken settings file before the client connects
        try:
            ServerConfig.load(args.config)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    try:
        start_server(log_path=args.log, config_path=args.config)
        return 0
    except Exception as e:
        print(f"Error starting LSP server: {e}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        return 1


def cmd_check(args: argparse.Namespace) -> int:
    """Print diagnostics for each file; non-zero exit if any were found."""
    try:
        config = _resolve_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    store = DocumentStore()
    found = 0
    failed = False

    for path in args.files:
        text = _read_source(path)
        if text is None:
            failed = True
            continue

        for diag in analyze_document(store, path, text, config.comment_lead):
            start = diag.range.start
            print(
                f"{path}:{start.line + 1}:{start.character + 1}: "
                f"{diag.severity.name.lower()}: {diag.message}"
            )
            found += 1

    if found:
        print(f"{found} problem(s) found", file=sys.stderr)
    return 1 if found or failed else 0


def cmd_symbols(args: argparse.Namespace) -> int:
    """Print a file's declarations and imports."""
    try:
        config = _resolve_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    text = _read_source(args.file)
    if text is None:
        return 1

    store = DocumentStore()
    analyze_document(store, args.file, text, config.comment_lead)
    info = store.get(args.file)
    assert info is not None

    for symbol in info.symbols.values():
        start = symbol.range.start
        print(
            f"{symbol.display_type:<9} {symbol.name} "
            f"{start.line + 1}:{start.character + 1}"
        )
    for module in info.imports:
        print(f"{'import':<9} {module}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="asteroid-ls",
        description="Language tools for Asteroid",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  asteroid-ls lsp                    Start the language server on stdio
  asteroid-ls lsp --log server.log   Also copy the server log to a file
  asteroid-ls check main.ast         Report problems in a file
  asteroid-ls symbols main.ast       List declarations and imports
        """,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Settings file (default: nearest .asteroid-ls.json)",
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    lsp_parser = subparsers.add_parser(
        "lsp", help="Start the Language Server Protocol server"
    )
    lsp_parser.add_argument(
        "--log",
        metavar="FILE",
        help="Log file for debugging LSP communication",
    )

    check_parser = subparsers.add_parser(
        "check", help="Report diagnostics for Asteroid files"
    )
    check_parser.add_argument("files", nargs="+", metavar="FILE")
    check_parser.add_argument(
        "--comments",
        choices=sorted(COMMENT_STYLES),
        help="Line comment style: dash (--) or percent (%%)",
    )

    symbols_parser = subparsers.add_parser(
        "symbols", help="Print the declarations and imports of a file"
    )
    symbols_parser.add_argument("file", metavar="FILE")
    symbols_parser.add_argument(
        "--comments",
        choices=sorted(COMMENT_STYLES),
        help="Line comment style: dash (--) or percent (%%)",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the CLI. Calls sys.exit with return code."""
    sys.exit(_main(argv))


def _main(argv: Optional[list[str]] = None) -> int:
    """Internal main that returns exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.subcommand == "lsp":
        return cmd_lsp(args)
    elif args.subcommand == "check":
        return cmd_check(args)
    elif args.subcommand == "symbols":
        return cmd_symbols(args)

    parser.print_help()
    return 2


if __name__ == "__main__":
    main()
