"""objectdocs CLI.

Usage:
    python -m objectdocs health
    python -m objectdocs init-buckets

Settings come from OBJECTDOCS_* environment variables (see objectdocs.config).

Exit codes:
    0: Store reachable / buckets ready
    1: Store degraded / configuration or internal error
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from objectdocs import __version__
from objectdocs.config import ConfigError, load_config
from objectdocs.document_store import DocumentStore
from objectdocs.errors import DocumentStoreError


def _output_json(data: dict[str, Any]) -> None:
    """Output JSON to stdout with deterministic formatting."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _make_error_result(code: str, message: str) -> dict[str, Any]:
    return {"error": {"code": code, "message": message}, "pass": False}


def cmd_health(document_store: DocumentStore) -> int:
    """Probe the object store."""
    summary = document_store.health()
    _output_json({**summary, "version": __version__})
    return 0 if summary["status"] == "ok" else 1


def cmd_init_buckets(document_store: DocumentStore) -> int:
    """Create the users, posts and files buckets if missing."""
    created = document_store.ensure_buckets()
    _output_json(
        {
            "backend": document_store.backend_name,
            "buckets": list(document_store.config.buckets),
            "created": created,
            "pass": True,
        }
    )
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="objectdocs",
        description="objectdocs - document-store emulation over an object store",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")
    subparsers.add_parser("health", help="Check that the object store is reachable")
    subparsers.add_parser("init-buckets", help="Create the configured buckets if missing")
    return parser


def main(argv: list[str] | None = None, *, document_store: DocumentStore | None = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments; sys.argv[1:] if None.
        document_store: Store to operate on. Built from the environment if None.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if document_store is None:
            document_store = DocumentStore(load_config())

        if args.command == "health":
            return cmd_health(document_store)
        if args.command == "init-buckets":
            return cmd_init_buckets(document_store)
        return 0

    except ConfigError as e:
        _output_json(_make_error_result("CONFIG_ERROR", str(e)))
        return 1
    except DocumentStoreError as e:
        _output_json(_make_error_result("STORE_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
