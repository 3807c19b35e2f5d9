"""`sgecluster-node`: runs the bootstrap protocol on a cluster host."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from loguru import logger

from sgecluster.core.exceptions import SgeClusterError
from sgecluster.logging import LogConfig, setup_logging
from sgecluster.node.metadata import MetadataClient
from sgecluster.node.protocol import NodeBootstrap
from sgecluster.node.runner import SubprocessRunner

log = logger.bind(component="node-cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sgecluster-node",
        description="Bootstrap this host as a cluster master or execution host.",
    )
    parser.add_argument("--hostname", default=None, help="Override the local short hostname")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(LogConfig(level="DEBUG" if args.verbose else "INFO"))

    try:
        with MetadataClient() as metadata:
            NodeBootstrap(SubprocessRunner(), metadata, hostname=args.hostname).run()
    except SgeClusterError as e:
        log.opt(exception=e).debug("Bootstrap failed")
        print(e, file=sys.stderr)
        return 1
    return 0


def cli() -> None:
    sys.exit(main())
