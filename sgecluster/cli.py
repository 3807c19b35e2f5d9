"""Command line entry point: `sgecluster {up|up-full|down|down-full}`."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.table import Table

from sgecluster.config import resolve_settings
from sgecluster.controller import ClusterController, Operation
from sgecluster.core.exceptions import SgeClusterError, UsageError
from sgecluster.logging import LogConfig, setup_logging
from sgecluster.providers.provider import ComputeProvider, InstanceSummary
from sgecluster.spec import ClusterSpec

log = logger.bind(component="cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sgecluster",
        description="Bring a master/execution cluster up or down.",
        usage="%(prog)s [up-full | up | down-full | down] [--config PATH] [--verbose]",
    )
    parser.add_argument("operation", nargs="?", help="up, up-full, down or down-full")
    parser.add_argument("--config", type=Path, default=None, help="Path to sgecluster.toml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def render_instances(instances: Sequence[InstanceSummary], console: Console) -> None:
    table = Table(title="Cluster instances")
    for header in ("NAME", "ZONE", "STATUS", "INTERNAL IP", "EXTERNAL IP"):
        table.add_column(header)
    for inst in sorted(instances, key=lambda i: i.name):
        table.add_row(
            inst.name, inst.zone, inst.status, inst.internal_ip or "-", inst.external_ip or "-",
        )
    console.print(table)


async def execute(
    operation: Operation, spec: ClusterSpec, provider: ComputeProvider,
) -> Sequence[InstanceSummary]:
    try:
        return await ClusterController(spec, provider).run(operation)
    finally:
        await provider.close()


async def _run(operation: Operation, config_path: Path | None) -> Sequence[InstanceSummary]:
    settings = resolve_settings(config_path=config_path)
    provider = await settings.provider.create_provider()
    return await execute(operation, settings.cluster, provider)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(LogConfig(level="DEBUG" if args.verbose else "INFO"))

    try:
        operation = Operation.parse(args.operation)
    except UsageError as e:
        print(e, file=sys.stderr)
        return 1

    try:
        instances = asyncio.run(_run(operation, args.config))
    except SgeClusterError as e:
        log.opt(exception=e).debug("{op} failed", op=str(operation))
        print(e, file=sys.stderr)
        return 1

    if instances:
        render_instances(instances, Console())
    return 0


def cli() -> None:
    sys.exit(main())


