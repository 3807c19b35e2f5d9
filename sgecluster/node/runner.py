"""Command execution for the node bootstrap protocol."""

from __future__ import annotations

import os
import shlex
import subprocess
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from loguru import logger

from sgecluster.core.exceptions import CommandError

log = logger.bind(component="runner")


@runtime_checkable
class CommandRunner(Protocol):
    def run(self, args: Sequence[str]) -> str:
        """Run a command, returning stdout. Raises CommandError on failure."""
        ...

    def succeeds(self, args: Sequence[str]) -> bool:
        """Run a probe command and report whether it exited zero."""
        ...


class SubprocessRunner:
    """Runs commands locally with a non-interactive apt environment."""

    def __init__(self, env: dict[str, str] | None = None) -> None:
        self._env = {**os.environ, "DEBIAN_FRONTEND": "noninteractive", **(env or {})}

    def run(self, args: Sequence[str]) -> str:
        log.info("$ {cmd}", cmd=shlex.join(args))
        proc = subprocess.run(list(args), capture_output=True, text=True, env=self._env)
        if proc.returncode != 0:
            raise CommandError(args, proc.returncode, proc.stderr)
        return proc.stdout

    def succeeds(self, args: Sequence[str]) -> bool:
        proc = subprocess.run(list(args), capture_output=True, text=True, env=self._env)
        log.debug("{cmd} -> {code}", cmd=shlex.join(args), code=proc.returncode)
        return proc.returncode == 0
