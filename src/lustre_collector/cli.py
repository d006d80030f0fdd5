# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
"""
Command line entry point.

    lustre-collector collect [--format json|yaml|table]
    lustre-collector params
    lustre-collector serve --port 9600
"""
import argparse
import logging
import sys
from typing import Callable, Dict, List, Optional

from lustre_collector.brw_stats_parser import BrwSchema
from lustre_collector.collector import collect
from lustre_collector.config import CollectorConfig
from lustre_collector.errors import LustreCollectorError
from lustre_collector.executor import CommandMode
from lustre_collector.exporter import serve
from lustre_collector.logging_init import initialize_logging
from lustre_collector.parser import params
from lustre_collector.serialize import OutputFormat, render

logger = logging.getLogger("lustre-collector")


def collect_command(config: CollectorConfig, args: argparse.Namespace) -> None:
    records = collect(config)
    print(render(records, OutputFormat(args.format)))


def params_command(config: CollectorConfig, args: argparse.Namespace) -> None:
    for pattern in params():
        print(pattern)


def serve_command(config: CollectorConfig, args: argparse.Namespace) -> None:
    logger.info(f"Starting Lustre exporter on port {args.port}")
    logger.info(f"Command timeout: {config.timeout}s")
    try:
        serve(config, args.port)
    except KeyboardInterrupt:
        logger.info("Exporter stopped by user")


COMMANDS: Dict[str, Callable[[CollectorConfig, argparse.Namespace], None]] = {
    "collect": collect_command,
    "params": params_command,
    "serve": serve_command,
}


def _add_shared_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in CommandMode],
        help="Run commands live, record them, or replay recordings",
    )
    parser.add_argument("--cassettes", help="Directory holding command recordings")
    parser.add_argument(
        "--timeout", type=int, help="Command execution timeout in seconds"
    )
    parser.add_argument(
        "--brw-stats-schema",
        choices=[schema.value for schema in BrwSchema],
        help="Keep only read/write counts, or the full brw_stats table",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-file", help="Also log to this rotating file")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lustre-collector", description="Lustre statistics collector"
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    collect_parser = subparsers.add_parser(
        "collect", help="Collect once and print the records"
    )
    collect_parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.JSON.value,
    )
    _add_shared_arguments(collect_parser)

    params_parser = subparsers.add_parser(
        "params", help="Print the parameter patterns queried from lctl"
    )
    _add_shared_arguments(params_parser)

    serve_parser = subparsers.add_parser(
        "serve", help="Serve the records as Prometheus metrics"
    )
    serve_parser.add_argument(
        "--port", type=int, default=9600, help="Port to expose metrics on"
    )
    _add_shared_arguments(serve_parser)
    return parser


def build_config(args: argparse.Namespace) -> CollectorConfig:
    """Environment settings overridden by whatever was given on the command line."""
    config = CollectorConfig.from_env()
    if args.mode:
        config.mode = CommandMode(args.mode)
    if args.cassettes:
        config.cassettes = args.cassettes
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.brw_stats_schema:
        config.brw_schema = BrwSchema(args.brw_stats_schema)
    return config


def main(argv: Optional[List[str]] = None) -> None:
    args = create_parser().parse_args(argv)
    initialize_logging(args.log_level, args.log_file)
    try:
        config = build_config(args)
        COMMANDS[args.command](config, args)
    except LustreCollectorError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
