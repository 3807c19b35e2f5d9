"""Startup script attached to every instance as `startup-script` metadata.

The provider's guest agent runs this script on every boot. By default it is
a small launcher: it installs the node package into a private virtualenv on
first boot, then hands over to `sgecluster-node`, which runs the bootstrap
protocol. A ClusterSpec may name its own script file instead.
"""

from __future__ import annotations

from pathlib import Path

from sgecluster.constants import NODE_COMMAND, NODE_VENV
from sgecluster.core.exceptions import ConfigurationError
from sgecluster.spec import ClusterSpec

from .compose import bootstrap
from .control import unless
from .ops import apt, env_export, exec_, mkdir, pip, venv


def node_launcher(node_package: str, venv_path: str = NODE_VENV) -> str:
    """Render the default launcher script."""
    node_bin = f"{venv_path}/bin/{NODE_COMMAND}"
    return bootstrap(
        env_export(PATH="/usr/local/bin:$PATH"),
        unless(
            f"test -x {node_bin}",
            apt("python3-venv"),
            mkdir(str(Path(venv_path).parent)),
            venv(venv_path),
            pip(venv_path, node_package),
        ),
        exec_(node_bin),
    )


def startup_script(spec: ClusterSpec) -> str:
    """Resolve the startup script body for a cluster."""
    if spec.startup_script is None:
        return node_launcher(spec.node_package)

    path = Path(spec.startup_script).expanduser()
    try:
        return path.read_text()
    except OSError as e:
        raise ConfigurationError(f"Cannot read startup script {path}: {e.strerror}") from e
