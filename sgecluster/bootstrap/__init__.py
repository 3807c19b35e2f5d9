"""Declarative startup-script DSL.

Example:
    >>> from sgecluster.bootstrap import bootstrap, apt, mkdir, unless
    >>>
    >>> script = bootstrap(
    ...     unless("test -d /mnt/data", apt("python3-venv"), mkdir("/mnt/data")),
    ...     "echo ready",
    ... )
"""

from __future__ import annotations

from .compose import Op, bootstrap, resolve
from .control import unless, when
from .ops import apt, env_export, exec_, mkdir, pip, venv
from .startup import node_launcher, startup_script

__all__ = [
    "Op",
    "bootstrap",
    "resolve",
    "apt",
    "env_export",
    "exec_",
    "mkdir",
    "pip",
    "venv",
    "when",
    "unless",
    "node_launcher",
    "startup_script",
]
