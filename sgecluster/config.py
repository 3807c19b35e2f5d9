"""TOML-based cluster and provider configuration.

Loads ~/.sgecluster/defaults.toml (global) and sgecluster.toml (project),
merges them, and resolves the result into a ClusterSpec plus a provider
configuration.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from sgecluster.core.exceptions import ConfigurationError
from sgecluster.providers.gcp.config import GCP
from sgecluster.spec import ClusterSpec, HostNamePattern, Role, RoleSpec

type RawConfig = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".sgecluster" / "defaults.toml"
PROJECT_CONFIG_NAME = "sgecluster.toml"

_DEFAULT_PATTERNS = {
    Role.MASTER: "{prefix}-mm",
    Role.EXECUTION: "{prefix}-eh-%d",
}


@dataclass(frozen=True, slots=True)
class Settings:
    """Everything one CLI invocation needs."""

    cluster: ClusterSpec
    provider: GCP


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"{path}: {e}") from e


def load_config(
    *,
    config_path: Path | None = None,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)

    if config_path is not None:
        if not config_path.is_file():
            raise ConfigurationError(f"Config file {config_path} not found")
        project_cfg = _read_toml(config_path)
    else:
        project_cfg = _read_toml((project_dir or Path.cwd()) / PROJECT_CONFIG_NAME)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("cluster", {})
    merged.setdefault("provider", {})
    return merged


def _build_role(role: Role, prefix: str, raw: RawConfig) -> RoleSpec:
    raw = dict(raw)
    pattern = raw.pop("name_pattern", _DEFAULT_PATTERNS[role].format(prefix=prefix))
    _reject_unknown(f"cluster.{role}", raw, RoleSpec, exclude={"name_pattern"})
    try:
        return RoleSpec(name_pattern=HostNamePattern(pattern), **raw)
    except TypeError as e:
        raise ConfigurationError(f"[cluster.{role}]: {e}") from e


def build_cluster_spec(raw: RawConfig) -> ClusterSpec:
    raw = dict(raw)
    prefix = raw.pop("prefix", None)
    if not prefix:
        raise ConfigurationError("[cluster] missing 'prefix' field")

    master = _build_role(Role.MASTER, prefix, raw.pop("master", {}))
    execution = _build_role(Role.EXECUTION, prefix, raw.pop("execution", {}))

    if "scopes" in raw:
        raw["scopes"] = tuple(raw["scopes"])

    _reject_unknown("cluster", raw, ClusterSpec, exclude={"prefix", "master", "execution"})
    return ClusterSpec(prefix=prefix, master=master, execution=execution, **raw)


def build_provider(raw: RawConfig) -> GCP:
    raw = dict(raw)
    provider_type = raw.pop("type", "gcp")
    if provider_type != "gcp":
        raise ConfigurationError(f"Unknown provider type '{provider_type}'. Valid: gcp")
    _reject_unknown("provider", raw, GCP)
    return GCP(**raw)


def resolve_settings(
    *,
    config_path: Path | None = None,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> Settings:
    config = load_config(
        config_path=config_path, project_dir=project_dir, global_path=global_path,
    )
    return Settings(
        cluster=build_cluster_spec(config["cluster"]),
        provider=build_provider(config["provider"]),
    )


def _reject_unknown(
    section: str, raw: RawConfig, cls: type, exclude: frozenset[str] | set[str] = frozenset(),
) -> None:
    valid = {f.name for f in fields(cls)} - set(exclude)
    if unknown := sorted(set(raw) - valid):
        raise ConfigurationError(
            f"[{section}] unknown keys: {', '.join(unknown)}. Valid: {', '.join(sorted(valid))}"
        )
