"""Argument parsing helpers for the ocular monitor CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Mapping, Optional

from .commands import handle_snapshot, handle_watch


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--telemetry-url",
        dest="telemetry_url",
        default=None,
        help="Telemetry feed URL (overrides sources.telemetry_url).",
    )
    parser.add_argument(
        "--prediction-url",
        dest="prediction_url",
        default=None,
        help="Prediction endpoint, absolute or relative to --base-url.",
    )
    parser.add_argument(
        "--base-url",
        dest="base_url",
        default=None,
        help="Base URL used to resolve a relative prediction endpoint.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds (default: polling.timeout or 10s).",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=("json", "text"),
        default="text",
        help="Render views as JSON documents or as a text summary.",
    )


def build_parser(config: Optional[Mapping[str, Any]] = None) -> argparse.ArgumentParser:
    config = dict(config or {})
    logging_cfg = dict(config.get("logging", {}))

    parser = argparse.ArgumentParser(
        prog="ocular-monitor",
        description="Poll ocular sensor telemetry and classify clinical indicators.",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to the TOML configuration file to load.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=logging_cfg.get("level", "info"),
        help="Logging level (e.g. debug, info, warning).",
    )
    parser.add_argument(
        "--log-output",
        dest="log_output",
        default=logging_cfg.get("output", "stderr"),
        help="Logging destination (stdout, stderr or a file path).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=logging_cfg.get("format", "json"),
        help="Logging formatter (json or text).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    snapshot_parser = subparsers.add_parser(
        "snapshot",
        help="Fetch both sources once and print the dashboard view.",
    )
    _add_source_arguments(snapshot_parser)
    snapshot_parser.set_defaults(handler=handle_snapshot)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Poll both sources periodically and print every new view.",
    )
    _add_source_arguments(watch_parser)
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between polls (default: polling.interval or 5s).",
    )
    watch_parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Exit after printing this many views.",
    )
    watch_parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Exit after this many seconds.",
    )
    watch_parser.set_defaults(handler=handle_watch)

    return parser


__all__ = ["build_parser"]
