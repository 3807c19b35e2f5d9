"""Core bootstrap operations.

Declarative operations for node setup: packages, directories, files.
Each operation is a function returning an Op (string or callable).
"""

from __future__ import annotations

import shlex

from .compose import Op

# =============================================================================
# Package Operations
# =============================================================================


def apt(*packages: str, quiet: bool = True, update: bool = True) -> Op:
    """Install APT packages.

    Waits for dpkg lock to be released (handles unattended-upgrades).

    Args:
        *packages: Package names to install.
        quiet: Use quiet mode (-qq).
        update: Run apt-get update first.

    Example:
        >>> apt("python3-venv")()
        'while fuser /var/lib/dpkg/lock-frontend >/dev/null 2>&1; do sleep 5; done\\napt-get update -qq\\napt-get install -y -qq python3-venv'
    """
    if not packages:
        return lambda: "# No APT packages to install"

    flags = "-qq" if quiet else ""
    install_flags = "-y -qq" if quiet else "-y"
    pkg_list = " ".join(packages)

    def generate() -> str:
        lines = [
            "while fuser /var/lib/dpkg/lock-frontend >/dev/null 2>&1; do sleep 5; done",
        ]
        if update:
            lines.append(f"apt-get update {flags}".strip())
        lines.append(f"apt-get install {install_flags} {pkg_list}")
        return "\n".join(lines)

    return generate


def venv(path: str) -> Op:
    """Create a Python virtual environment.

    Example:
        >>> venv("/opt/sgecluster/venv")()
        'python3 -m venv /opt/sgecluster/venv'
    """
    return lambda: f"python3 -m venv {path}"


def pip(venv_path: str, *requirements: str) -> Op:
    """Install requirements into a virtual environment.

    Example:
        >>> pip("/opt/sgecluster/venv", "sgecluster")()
        '/opt/sgecluster/venv/bin/pip install --quiet sgecluster'
    """
    if not requirements:
        return lambda: "# No pip packages to install"

    reqs = " ".join(shlex.quote(r) for r in requirements)
    return lambda: f"{venv_path}/bin/pip install --quiet {reqs}"


# =============================================================================
# File Operations
# =============================================================================


def mkdir(path: str, parents: bool = True) -> Op:
    """Create directory.

    Example:
        >>> mkdir("/opt/mydir")()
        'mkdir -p /opt/mydir'
    """
    flags = "-p " if parents else ""
    return lambda: f"mkdir {flags}{path}"


# =============================================================================
# Environment Operations
# =============================================================================


def env_export(**variables: str) -> Op:
    """Export environment variables.

    Example:
        >>> env_export(PATH="/usr/local/bin:$PATH")()
        'export PATH="/usr/local/bin:$PATH"'
    """
    if not variables:
        return lambda: "# No environment variables"

    def generate() -> str:
        return "\n".join(f'export {k}="{v}"' for k, v in variables.items())

    return generate


# =============================================================================
# Shell Operations
# =============================================================================


def exec_(cmd: str) -> Op:
    """Replace the script process with a command.

    Example:
        >>> exec_("/opt/sgecluster/venv/bin/sgecluster-node")()
        'exec /opt/sgecluster/venv/bin/sgecluster-node'
    """
    return lambda: f"exec {cmd}"
