"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for opencivic:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.opencivic/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **User settings** -- a single :class:`~opencivic.models.Settings` JSON
  file in the config directory.
* **Properties files** -- ``opencivicdata.properties`` in the working
  directory, in the ``apikey=...`` / ``cache=...`` format older tooling
  for this API used.
* **Precedence resolution** -- :func:`resolve_settings` merges explicit
  arguments, environment variables, the project properties file and the
  user settings into the effective :class:`~opencivic.models.Settings`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from opencivic.exceptions import ConfigError
from opencivic.models import Settings

_APP_NAME = "opencivic"
_CONFIG_FILENAME = "config.json"
PROPERTIES_FILENAME = "opencivicdata.properties"

ENV_API_KEY = "OPENCIVIC_API_KEY"
ENV_CACHE_DIR = "OPENCIVIC_CACHE_DIR"
ENV_BASE_URL = "OPENCIVIC_BASE_URL"

# Property names used in opencivicdata.properties -> Settings fields.
_PROPERTY_FIELDS = {
    "apikey": "api_key",
    "cache": "cache_dir",
    "server": "base_url",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/opencivic/`` (default ``~/.config/opencivic/``).
    On macOS/Windows: ``~/.opencivic/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the default response cache directory, creating it if necessary.

    This is only a suggested location (used by ``opencivic config
    set-cache-dir`` when no directory is given); caching stays off until
    ``cache_dir`` is actually configured.

    On Linux/BSD: ``$XDG_CACHE_HOME/opencivic/`` (default ``~/.cache/opencivic/``).
    On macOS/Windows: ``~/.opencivic/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/opencivic/`` (default ``~/.local/share/opencivic/``).
    On macOS/Windows: ``~/.opencivic/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- User settings ---


def _settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_user_settings() -> Settings:
    """Load the user settings from the config directory.

    Returns:
        The stored :class:`~opencivic.models.Settings`, or defaults when the
        file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_user_settings(settings: Settings) -> Path:
    """Persist *settings* atomically and return the file path."""
    path = _settings_path()
    data = settings.model_dump(mode="json", exclude_defaults=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Properties files ---


def load_properties(path: Path) -> dict[str, str]:
    """Parse a Java-style ``.properties`` file into a dict.

    Supports ``key=value`` and ``key: value`` lines, ``#`` and ``!``
    comments and blank lines.  Line continuations are not supported.

    Raises:
        ConfigError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read properties file {path}: {exc}") from exc

    props: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line[0] in "#!":
            continue
        positions = [pos for pos in (line.find("="), line.find(":")) if pos != -1]
        if not positions:
            props[line] = ""
            continue
        sep = min(positions)
        props[line[:sep].strip()] = line[sep + 1:].strip()
    return props


def load_project_properties() -> dict[str, Any]:
    """Read ``./opencivicdata.properties`` and map it to settings fields.

    Returns:
        A dict of :class:`~opencivic.models.Settings` field values; empty
        when the file does not exist.
    """
    path = Path.cwd() / PROPERTIES_FILENAME
    if not path.is_file():
        return {}
    props = load_properties(path)
    return {
        field: props[key]
        for key, field in _PROPERTY_FIELDS.items()
        if props.get(key)
    }


# --- Precedence resolution ---


def resolve_settings(
    api_key: Optional[str] = None,
    cache_dir: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Settings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. Explicit arguments
        2. Environment variables (``OPENCIVIC_API_KEY``,
           ``OPENCIVIC_CACHE_DIR``, ``OPENCIVIC_BASE_URL``)
        3. Project file (``./opencivicdata.properties``)
        4. User settings (``~/.config/opencivic/config.json``)
        5. Defaults

    Raises:
        ConfigError: If a settings source is unreadable or invalid.
    """
    # 5 + 4. Defaults, then user settings
    data = load_user_settings().model_dump()

    # 3. Project properties
    data.update(load_project_properties())

    # 2. Environment
    for env_var, field in (
        (ENV_API_KEY, "api_key"),
        (ENV_CACHE_DIR, "cache_dir"),
        (ENV_BASE_URL, "base_url"),
    ):
        value = os.environ.get(env_var)
        if value:
            data[field] = value

    # 1. Explicit arguments
    for field, value in (("api_key", api_key), ("cache_dir", cache_dir), ("base_url", base_url)):
        if value is not None:
            data[field] = value

    try:
        return Settings.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
