"""CLI entrypoints for docsync commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable

from .config import Credentials, load_config
from .errors import DocSyncError
from .logging import configure_logging
from .orchestrator import Orchestrator


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


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        type=Path,
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write detailed logs to this file.",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .docsync.yml or the directory containing it (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsync",
        description="Keep documentation in sync with code changes using pull request analysis.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the webhook and bulk-generation HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_log_file_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    update_parser = subparsers.add_parser(
        "update",
        help="Update documentation for a single pull request.",
    )
    _add_verbose_option(update_parser, suppress_default=True)
    _add_log_file_option(update_parser, suppress_default=True)
    _add_config_option(update_parser)
    update_parser.add_argument("owner", help="Repository owner.")
    update_parser.add_argument("repo", help="Repository name.")
    update_parser.add_argument("pull_number", type=int, help="Pull request number.")

    init_parser = subparsers.add_parser(
        "init",
        help="Generate initial documentation for important repository files.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    _add_log_file_option(init_parser, suppress_default=True)
    _add_config_option(init_parser)
    init_parser.add_argument("owner", help="Repository owner.")
    init_parser.add_argument("repo", help="Repository name.")

    return parser


def _default_factory(config_path: Path) -> Orchestrator:
    return Orchestrator.from_credentials(Credentials.from_env(), load_config(config_path))


def main(
    argv: list[str] | None = None,
    *,
    orchestrator_factory: Callable[[Path], Orchestrator] = _default_factory,
) -> None:
    """CLI entrypoint for docsync commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return

    try:
        orchestrator = orchestrator_factory(Path(args.config))
        if args.command == "update":
            context = orchestrator.run_update(args.owner, args.repo, args.pull_number)
        elif args.command == "init":
            context = orchestrator.run_initial(args.owner, args.repo)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except DocSyncError as exc:
        parser.exit(1, f"docsync {args.command} failed: {exc}\nRun with --verbose for more details.\n")

    if context.pull_request_url:
        print(f"Documentation pull request: {context.pull_request_url}")
    else:
        print("No documentation pull request was created")


if __name__ == "__main__":
    main(sys.argv[1:])
