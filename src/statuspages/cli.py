"""CLI entry point for statuspages."""

import argparse
import logging
import signal
import sys
import threading

from .config import StatusPagesConfig, config_to_yaml, load_config, merge_cli_args
from .example import ExampleService
from .server import Server


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add config flags shared by all subcommands."""
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument("--host", type=str, help="Address to listen on (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: OS-assigned)")
    parser.add_argument(
        "--bind-root", action="store_true", dest="bind_root_path", default=None,
        help='Also serve the status pages on "/"',
    )
    parser.add_argument(
        "--no-diagnostics", action="store_false", dest="diagnostics", default=None,
        help="Do not mount the /pprof/ endpoints",
    )
    parser.add_argument(
        "--log-level", type=str, dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )


def _build_config(args) -> StatusPagesConfig:
    """Build a StatusPagesConfig from a config file + CLI overrides."""
    if args.config:
        config = load_config(args.config)
    else:
        config = StatusPagesConfig()
    return merge_cli_args(config, args)


def cmd_serve(args) -> None:
    """Serve the status pages with an example service until interrupted."""
    config = _build_config(args)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    server = Server.from_config(config)
    server.add_service("Example", ExampleService())

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda signum, frame: stop.set())
    signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())

    # serve_forever polls, so the signal handlers get to run in this thread.
    try:
        server.run(stop)
    except OSError as e:
        print(f"Error: cannot listen on {config.host}:{config.port}: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_show_config(args) -> None:
    """Print the merged configuration as YAML."""
    print(config_to_yaml(_build_config(args)), end="")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="statuspages",
        description="statuspages: embeddable HTTP status pages",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser(
        "serve", help="Serve the status pages with an example service",
    )
    _add_common_args(serve_parser)
    serve_parser.set_defaults(func=cmd_serve)

    show_parser = subparsers.add_parser(
        "show-config", help="Print the effective configuration as YAML",
    )
    _add_common_args(show_parser)
    show_parser.set_defaults(func=cmd_show_config)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)
