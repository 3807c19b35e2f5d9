"""Bootstrap script composition.

Core types and composition functions for the declarative startup-script DSL.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Final

# =============================================================================
# Core Types
# =============================================================================

type Op = str | Callable[[], str] | list[Op]
"""Operation type: either a literal string or a function returning a string."""


def resolve(op: Op) -> str:
    """Resolve an operation to its string representation."""
    match op:
        case str(op):
            return op
        case list(op):
            return "\n".join(map(lambda o: resolve(o), op))
        case None:
            return ""
        case _:
            return op()


# =============================================================================
# Header
# =============================================================================

HEADER: Final = """#!/bin/bash
set -e

export DEBIAN_FRONTEND=noninteractive
"""


def bootstrap(*ops: Op | None, header: str | None = None) -> str:
    """Compose operations into a complete startup script.

    Args:
        *ops: Operations to compose. Can be strings or callables returning strings.
        header: Optional custom header replacing the default bash preamble.

    Returns:
        Complete shell script string.

    Example:
        >>> bootstrap(mkdir("/mnt/data"), "echo done")
        '#!/bin/bash\\nset -e\\n...\\nmkdir -p /mnt/data\\n\\necho done\\n'
    """
    base = HEADER if header is None else header
    commands = [resolve(op) for op in ops if op is not None]
    return base + "\n" + "\n\n".join(commands) + "\n"
