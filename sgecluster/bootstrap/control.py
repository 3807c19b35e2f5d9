"""Control flow operations for bootstrap scripts."""

from __future__ import annotations

from .compose import Op, resolve


def when(condition: str, *ops: Op) -> Op:
    """Execute operations only if condition is true.

    Args:
        condition: Shell condition (evaluated with `if condition; then`).
        *ops: Operations to execute if condition is true.

    Example:
        >>> when("command -v gluster", "gluster --version")()
        'if command -v gluster; then\\n    gluster --version\\nfi'
    """
    if not ops:
        return lambda: f"# when({condition!r}): no operations"

    def generate() -> str:
        body = "\n".join(resolve(op) for op in ops).replace("\n", "\n    ")
        return f"if {condition}; then\n    {body}\nfi"

    return generate


def unless(condition: str, *ops: Op) -> Op:
    """Execute operations only if condition is false.

    Example:
        >>> unless("test -d /mnt/data", "mkdir -p /mnt/data")()
        'if ! (test -d /mnt/data); then\\n    mkdir -p /mnt/data\\nfi'
    """
    return when(f"! ({condition})", *ops)
