"""Configuration for chartscan.

Two sources feed a run:

- user defaults in ``~/.chartscan/config.toml`` (``[scan]`` table), managed
  with ``chartscan config``;
- a project file ``chartscan.yaml`` passed with ``--config`` or found at the
  root of the current git repository.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import toml
import yaml

from . import config
from .config import (
    DEFAULT_HELM_BINARY,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OUTPUT_FORMAT,
    OUTPUT_FORMATS,
    PROJECT_CONFIG_FILE,
)
from .errors import ConfigError
from .models import EnvironmentConfig, ScanConfig

logger = logging.getLogger(__name__)


DEFAULT_SCAN_CONFIG: Dict[str, Any] = {
    "output_format": DEFAULT_OUTPUT_FORMAT,
    "max_workers": DEFAULT_MAX_WORKERS,
    "helm_binary": DEFAULT_HELM_BINARY,
}


# ---------------------------------------------------------------------------
# User defaults (TOML)
# ---------------------------------------------------------------------------

def load_user_config() -> Dict[str, Any]:
    """Load the ``[scan]`` table, falling back to defaults.

    Returns:
        Defaults updated with any known keys found in the file.
    """
    settings = DEFAULT_SCAN_CONFIG.copy()
    if not config.CONFIG_FILE.exists():
        return settings

    try:
        with open(config.CONFIG_FILE, "r") as f:
            data = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", config.CONFIG_FILE, exc)
        return settings

    for key, value in data.get("scan", {}).items():
        if key in settings:
            settings[key] = value
    return settings


def save_user_config(settings: Dict[str, Any]) -> None:
    """Write the ``[scan]`` table, preserving any other tables in the file."""
    data: Dict[str, Any] = {}
    if config.CONFIG_FILE.exists():
        try:
            with open(config.CONFIG_FILE, "r") as f:
                data = toml.load(f)
        except (OSError, toml.TomlDecodeError):
            data = {}

    data["scan"] = settings
    config.CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    with open(config.CONFIG_FILE, "w") as f:
        toml.dump(data, f)


def set_user_option(key: str, value: str) -> Dict[str, Any]:
    """Validate and persist one user default; returns the new settings."""
    if key not in DEFAULT_SCAN_CONFIG:
        raise ConfigError(
            f"Unknown option '{key}'. Valid options: {', '.join(sorted(DEFAULT_SCAN_CONFIG))}"
        )

    converted: Any = value
    if key == "max_workers":
        try:
            converted = int(value)
        except ValueError:
            raise ConfigError(f"max_workers must be an integer, got '{value}'") from None
        if converted < 1:
            raise ConfigError("max_workers must be at least 1")
    elif key == "output_format" and value not in OUTPUT_FORMATS:
        raise ConfigError(f"output_format must be one of: {', '.join(OUTPUT_FORMATS)}")

    settings = load_user_config()
    settings[key] = converted
    save_user_config(settings)
    return settings


def reset_user_config() -> bool:
    """Delete the user config file. Returns True if there was one."""
    if config.CONFIG_FILE.exists():
        config.CONFIG_FILE.unlink()
        return True
    return False


# ---------------------------------------------------------------------------
# Project config (chartscan.yaml)
# ---------------------------------------------------------------------------

def git_toplevel(cwd: Optional[Path] = None) -> Optional[Path]:
    """Root of the enclosing git work tree, or None outside of one."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            cwd=str(cwd) if cwd else None,
        )
    except OSError as exc:
        logger.debug("git not available: %s", exc)
        return None
    if result.returncode != 0:
        return None
    top = result.stdout.strip()
    return Path(top) if top else None


def find_project_config(cwd: Optional[Path] = None) -> Optional[Path]:
    """Path of chartscan.yaml at the git repository root, if there is one."""
    root = git_toplevel(cwd)
    if root is None:
        return None
    candidate = root / PROJECT_CONFIG_FILE
    if candidate.is_file():
        logger.info("Using config file from project root: %s", candidate)
        return candidate
    return None


def _as_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigError(f"'{field_name}' must be a list of paths")


def load_project_config(path: Path) -> ScanConfig:
    """Parse chartscan.yaml. Relative paths stay relative at this stage."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")

    environments: Dict[str, EnvironmentConfig] = {}
    raw_envs = data.get("environments") or {}
    if not isinstance(raw_envs, dict):
        raise ConfigError("'environments' must be a mapping")
    for name, env in raw_envs.items():
        env = env or {}
        if not isinstance(env, dict):
            raise ConfigError(f"environment '{name}' must be a mapping")
        environments[str(name)] = EnvironmentConfig(
            values_files=_as_list(env.get("valuesFiles"), f"environments.{name}.valuesFiles"),
        )

    return ScanConfig(
        chart_path=str(data.get("chartPath") or ""),
        values_files=_as_list(data.get("valuesFiles"), "valuesFiles"),
        output_format=str(data.get("format") or ""),
        environments=environments,
        config_file=str(path),
    )


def _resolve_relative(base_dir: Path, path: str) -> str:
    return os.path.abspath(os.path.join(str(base_dir), path))


def build_scan_config(
    config_file: Optional[Path] = None,
    values_files: Sequence[str] = (),
    output_format: Optional[str] = None,
    environment: Optional[str] = None,
    discover: bool = True,
) -> ScanConfig:
    """Combine user defaults, the project file and CLI options.

    Values files: project list, replaced by the environment's list, replaced
    by ``values_files`` when given. Paths coming from the project file are
    resolved against its directory.
    """
    user = load_user_config()

    if config_file is None and discover:
        config_file = find_project_config()

    if config_file is not None:
        project = load_project_config(config_file)
        base_dir = Path(config_file).resolve().parent
        if project.chart_path:
            project.chart_path = _resolve_relative(base_dir, project.chart_path)
        project.values_files = [_resolve_relative(base_dir, f) for f in project.values_files]
        for env in project.environments.values():
            env.values_files = [_resolve_relative(base_dir, f) for f in env.values_files]
    else:
        project = ScanConfig(output_format="")

    if environment:
        env = project.environments.get(environment)
        if env is None:
            raise ConfigError(f"environment {environment} not found in {PROJECT_CONFIG_FILE}")
        project.values_files = list(env.values_files)

    if values_files:
        project.values_files = list(values_files)

    project.output_format = (
        output_format or project.output_format or user["output_format"] or DEFAULT_OUTPUT_FORMAT
    )
    if project.output_format not in OUTPUT_FORMATS:
        raise ConfigError(f"Unknown output format: {project.output_format}")

    try:
        project.max_workers = max(1, int(user["max_workers"]))
    except (TypeError, ValueError):
        raise ConfigError(f"max_workers must be an integer, got '{user['max_workers']}'") from None
    project.helm_binary = str(user["helm_binary"] or DEFAULT_HELM_BINARY)
    return project
