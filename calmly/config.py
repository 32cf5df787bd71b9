"""Calmly settings: where the database lives, which auth server to log in
against, and how a breathing session is paced.

Settings are a JSON file holding an :class:`~calmly.models.AppConfig`.
Every change goes through :func:`update_config`, which validates the
merged result before anything is written, so a bad value never reaches
disk. On load, fields that no longer validate fall back to their defaults
one by one instead of throwing the whole file away.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

from pydantic import ValidationError

from calmly.errors import InvalidConfigError
from calmly.models import AppConfig

log = logging.getLogger(__name__)

_APP_NAME = "calmly"
DB_FILENAME = "calmly.db"


def _app_dirs() -> tuple[Path, Path]:
    """Return ``(settings dir, data dir)`` for this platform.

    Under python-for-android both live in the app's private storage.
    """
    private = os.environ.get("ANDROID_PRIVATE") or os.environ.get("ANDROID_APP_PATH")
    if private or "ANDROID_ARGUMENT" in os.environ or hasattr(sys, "getandroidapilevel"):
        root = Path(private or ".") / _APP_NAME
        return root / "settings", root / "data"
    home = Path.home()
    return home / ".config" / _APP_NAME, home / ".local" / "share" / _APP_NAME


_CONFIG_DIR, _DB_DIR = _app_dirs()
_CONFIG_FILE = _CONFIG_DIR / "settings.json"


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def normalise_api_url(url: str) -> str:
    """Validate an auth server base URL and strip trailing slashes.

    ``10.0.2.2:9000`` (the Android emulator's host alias, typed without a
    scheme) becomes ``http://10.0.2.2:9000``.
    """
    url = url.strip()
    if url and "://" not in url:
        url = "http://" + url
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidConfigError(f"Not an http(s) server address: {url!r}")
    if parts.query or parts.fragment:
        raise InvalidConfigError("The server address cannot carry a query or fragment.")
    return url.rstrip("/")


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
        for err in exc.errors()
    )


def _salvage(data: dict[str, Any]) -> AppConfig:
    """Build a config from ``data``, dropping each field that fails validation."""
    if isinstance(data.get("api_url"), str):
        try:
            data = {**data, "api_url": normalise_api_url(data["api_url"])}
        except InvalidConfigError as exc:
            log.warning("Resetting api_url in %s (%s)", _CONFIG_FILE, exc)
            data = {k: v for k, v in data.items() if k != "api_url"}
    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        log.warning("Resetting invalid settings in %s (%s)", _CONFIG_FILE, _describe(exc))
        bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
        kept = {k: v for k, v in data.items() if k not in bad}
        try:
            return AppConfig.model_validate(kept)
        except ValidationError:
            return AppConfig()


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def load_config() -> AppConfig:
    """Read settings, falling back to defaults for anything missing or invalid."""
    if not _CONFIG_FILE.exists():
        return AppConfig()
    try:
        data = json.loads(_CONFIG_FILE.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        log.warning("Ignoring unreadable settings at %s: %s", _CONFIG_FILE, exc)
        return AppConfig()
    if not isinstance(data, dict):
        log.warning("Ignoring settings at %s: expected a JSON object", _CONFIG_FILE)
        return AppConfig()
    return _salvage(data)


def save_config(config: AppConfig) -> Path:
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return _CONFIG_FILE


def update_config(**changes: Any) -> AppConfig:
    """Merge ``changes`` into the saved settings, validate, then save.

    Raises :class:`InvalidConfigError` (and writes nothing) if the result
    would not validate.
    """
    current = load_config()
    try:
        updated = AppConfig.model_validate({**current.model_dump(), **changes})
    except ValidationError as exc:
        raise InvalidConfigError(_describe(exc)) from exc
    save_config(updated)
    log.debug("Settings updated: %s", sorted(changes))
    return updated


# ---------------------------------------------------------------------------
# Individual settings
# ---------------------------------------------------------------------------


def get_db_path() -> Path:
    """The database file to open, creating its parent directory."""
    config = load_config()
    path = Path(config.db_path) if config.db_path else _DB_DIR / DB_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def set_db_path(path: Optional[str]) -> AppConfig:
    """Use a custom database file; a directory gets ``calmly.db`` inside it.

    ``None`` goes back to the default location.
    """
    if path is None:
        return update_config(db_path=None)
    resolved = Path(path).expanduser().resolve()
    if resolved.is_dir():
        resolved = resolved / DB_FILENAME
    return update_config(db_path=str(resolved))


def set_api_url(url: str) -> AppConfig:
    return update_config(api_url=normalise_api_url(url))


def set_session_pacing(
    tick_interval: Optional[float] = None, countdown_seconds: Optional[int] = None
) -> AppConfig:
    """Change how often a session ticks and how long the "get ready" count lasts."""
    changes: dict[str, Any] = {}
    if tick_interval is not None:
        changes["tick_interval"] = tick_interval
    if countdown_seconds is not None:
        changes["countdown_seconds"] = countdown_seconds
    return update_config(**changes)
