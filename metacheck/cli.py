"""CLI entrypoints for metacheck commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .logging import configure_logging
from .metadata import NoMetadataFoundError
from .orchestrator import Orchestrator

EXIT_INVALID = 2


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metacheck",
        description="Match Solidity metadata files against the sources they declare.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .metacheck.yml or the directory holding it (defaults to current directory).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Check metadata, source files, directories and zip archives.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    check_parser.add_argument(
        "paths",
        nargs="+",
        help="Files, directories or zip archives to check.",
    )
    check_parser.add_argument(
        "--no-fetch",
        action="store_true",
        help="Never fetch missing sources from GitHub or IPFS.",
    )
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for metacheck commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    configure_logging(verbose=bool(args.verbose), log_file=config.log_file)

    if args.command == "check":
        if args.no_fetch:
            config.fetch.enabled = False
        orchestrator = Orchestrator.from_config(config)
        ignoring: list[str] = []
        try:
            contracts = orchestrator.check_paths(args.paths, ignoring)
        except NoMetadataFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except Exception as exc:  # pragma: no cover - defensive guard
            parser.exit(1, f"metacheck check failed: {exc}\nRun with --verbose for more details.\n")

        if args.json:
            payload = {
                "contracts": [contract.to_dict() for contract in contracts],
                "ignored": ignoring,
            }
            print(json.dumps(payload, indent=2))
        else:
            for path in ignoring:
                print(f"Ignored nonexistent path {path}")
            for contract in contracts:
                status = "valid" if contract.is_valid() else "INVALID"
                print(f"[{status}] {contract.info}")

        if not all(contract.is_valid() for contract in contracts):
            sys.exit(EXIT_INVALID)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
