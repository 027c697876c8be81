"""Where cacheworker keeps its settings, and how they are combined.

The user config is one JSON document matching
:class:`~cacheworker.models.WorkerConfig` (version tag, URL reference
lists, network and store settings) stored in :func:`get_config_dir`.  A
``cacheworker.json`` in the working directory may override any subset of
it, the ``CACHEWORKER_*`` environment variables override that, and CLI
flags win over everything; :func:`resolve_config` applies the layers.

The default store root is :func:`get_cache_dir`; crash logs go to
:func:`get_data_dir`.  Config writes go through :func:`_atomic_write`.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from cacheworker.exceptions import ConfigError
from cacheworker.models import WorkerConfig

_APP_NAME = "cacheworker"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "cacheworker.json"

ENV_VERSION = "CACHEWORKER_VERSION"
ENV_ORIGIN = "CACHEWORKER_ORIGIN"
ENV_STORE = "CACHEWORKER_STORE"


# --- Directory layout ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback_sub: Optional[str]) -> Path:
    """Resolve (and create) one of the application directories.

    XDG platforms use ``$<xdg_var>/cacheworker``, with ``~/<xdg_default>``
    standing in for an unset variable.  Elsewhere everything lives under
    ``~/.cacheworker``, in *fallback_sub* when given.
    """
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/cacheworker`` (``~/.cacheworker`` off XDG)."""
    return _app_dir("XDG_CONFIG_HOME", ".config", None)


def get_cache_dir() -> Path:
    """Default store root: ``$XDG_CACHE_HOME/cacheworker`` (``~/.cacheworker/cache`` off XDG)."""
    return _app_dir("XDG_CACHE_HOME", ".cache", "cache")


def get_data_dir() -> Path:
    """Crash logs: ``$XDG_DATA_HOME/cacheworker`` (``~/.cacheworker/logs`` off XDG)."""
    return _app_dir("XDG_DATA_HOME", ".local/share", "logs")


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a sibling temp file and ``os.replace``.

    Readers see either the old file or the complete new one.  The temp
    file is removed if anything fails before the rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


# --- User config ---


def _config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_worker_config() -> WorkerConfig:
    """Load the user configuration from the config directory.

    Returns:
        The deserialised :class:`~cacheworker.models.WorkerConfig`, or a
        default instance if no file exists.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _config_path()
    if not path.is_file():
        return WorkerConfig()
    data = _read_json(path, "config")
    try:
        return WorkerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_worker_config(config: WorkerConfig) -> None:
    """Persist *config* atomically to the config directory."""
    data = config.model_dump(mode="json")
    _atomic_write(_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./cacheworker.json``.

    The file may hold any subset of :class:`~cacheworker.models.WorkerConfig`
    fields; it is deep-merged over the user config by
    :func:`resolve_config`.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json(path, "project config")


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_version: Optional[str] = None,
    cli_origin: Optional[str] = None,
    cli_store: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> WorkerConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_version``, ``cli_origin``, ``cli_store``, ``cli_format``)
        2. Environment variables (``CACHEWORKER_VERSION``,
           ``CACHEWORKER_ORIGIN``, ``CACHEWORKER_STORE``)
        3. Project config (``./cacheworker.json``)
        4. User config (``~/.config/cacheworker/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is invalid.
    """
    # 5 + 4. User config (fills in defaults automatically)
    data = load_worker_config().model_dump(mode="json")

    # 3. Project-local overrides
    project = load_project_config()
    if project is not None:
        try:
            merged = WorkerConfig.model_validate(_deep_merge(data, project))
        except ValidationError as exc:
            raise ConfigError(f"Invalid project config: {exc}") from exc
        data = merged.model_dump(mode="json")

    # 2. Environment variables
    env_version = os.environ.get(ENV_VERSION)
    if env_version:
        data["version"] = env_version
    env_origin = os.environ.get(ENV_ORIGIN)
    if env_origin:
        data["network"]["origin"] = env_origin
    env_store = os.environ.get(ENV_STORE)
    if env_store:
        data["store"]["directory"] = env_store

    # 1. CLI flags (highest precedence)
    if cli_version is not None:
        data["version"] = cli_version
    if cli_origin is not None:
        data["network"]["origin"] = cli_origin
    if cli_store is not None:
        data["store"]["directory"] = cli_store
    if cli_format is not None:
        data["output"]["format"] = cli_format

    try:
        return WorkerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
