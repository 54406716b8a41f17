"""Command handlers for ``ocular-monitor``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Callable, Mapping

import httpx

from ..errors import OcularMonitorError
from ..monitor import DashboardView, Monitor
from ..settings import MonitorSettings
from .errors import CliError

__all__ = [
    "handle_snapshot",
    "handle_watch",
    "render_json",
    "render_text",
    "settings_from_namespace",
]


logger = logging.getLogger(__name__)


def settings_from_namespace(
    namespace: argparse.Namespace, config: Mapping[str, Any]
) -> MonitorSettings:
    """Combine configuration file values with command line overrides."""

    try:
        settings = MonitorSettings.from_config(config)
        return settings.with_overrides(
            telemetry_url=getattr(namespace, "telemetry_url", None),
            prediction_url=getattr(namespace, "prediction_url", None),
            base_url=getattr(namespace, "base_url", None),
            timeout=getattr(namespace, "timeout", None),
            poll_interval=getattr(namespace, "interval", None),
        )
    except OcularMonitorError as exc:
        raise CliError.from_exception(exc) from exc


def _create_client(settings: MonitorSettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.timeout)


def render_json(view: DashboardView) -> str:
    return json.dumps(view.as_dict(), indent=2, sort_keys=False)


def _format_value(value: Any) -> str:
    if value is None:
        return "--"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def render_text(view: DashboardView) -> str:
    lines = [f"Overall: {view.overall.value}"]
    if view.prediction is not None:
        lines.append(f"Prediction: {view.prediction}")
    if view.prediction_error:
        lines.append(f"Warning: {view.prediction_error}")
    width = max((len(name) for name in view.indicators), default=0)
    for name, reading in view.indicators.items():
        bounds = reading.normal_range.describe() if reading.normal_range else "no range"
        lines.append(
            f"  {name.ljust(width)}  {_format_value(reading.value):>8}  "
            f"{reading.verdict.value:<8}  ({bounds})"
        )
    if view.has_telemetry:
        samples = len(next(iter(view.channels.values())))
        lines.append(f"Channels: {len(view.channels)} series x {samples} samples")
    else:
        lines.append("Channels: waiting for telemetry")
    return "\n".join(lines)


def _renderer(namespace: argparse.Namespace) -> Callable[[DashboardView], str]:
    if getattr(namespace, "output_format", "text") == "json":
        return render_json
    return render_text


def _build_monitor(settings: MonitorSettings, client: httpx.AsyncClient) -> Monitor:
    try:
        return Monitor(settings, client=client)
    except OcularMonitorError as exc:
        raise CliError.from_exception(exc) from exc


def handle_snapshot(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    settings = settings_from_namespace(namespace, config)
    render = _renderer(namespace)

    async def _run() -> DashboardView:
        async with _create_client(settings) as client:
            monitor = _build_monitor(settings, client)
            return await monitor.refresh()

    view = asyncio.run(_run())
    return render(view)


def handle_watch(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    settings = settings_from_namespace(namespace, config)
    render = _renderer(namespace)
    count = getattr(namespace, "count", None)
    duration = getattr(namespace, "duration", None)
    if count is not None and count <= 0:
        raise CliError("--count must be positive", category="usage", context={"count": count})
    if duration is not None and duration <= 0:
        raise CliError(
            "--duration must be positive", category="usage", context={"duration": duration}
        )

    async def _run() -> None:
        done = asyncio.Event()
        emitted = 0

        def _emit(view: DashboardView) -> None:
            nonlocal emitted
            sys.stdout.write(render(view) + "\n")
            sys.stdout.flush()
            emitted += 1
            if count is not None and emitted >= count:
                done.set()

        async with _create_client(settings) as client:
            monitor = _build_monitor(settings, client)
            monitor.add_listener(_emit)
            async with monitor:
                try:
                    await asyncio.wait_for(done.wait(), timeout=duration)
                except asyncio.TimeoutError:
                    pass
        logger.info(
            "Watch finished.", extra={"event": "cli.watch_finished", "views": emitted}
        )

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("Watch interrupted.", extra={"event": "cli.watch_interrupted"})
    return ""
