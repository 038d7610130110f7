"""
Runtime settings, read from the environment.

`.env` and `.env.local` (if present) are loaded first without overriding
variables that are already set. Malformed values fall back to defaults.

- `FORM_BUILDER_HISTORY_LIMIT` (default 10): cap for the undo and redo stacks
- `FORM_BUILDER_DEFAULT_TITLE` (default "Untitled Form")
- `FORM_BUILDER_STORAGE_DIR`: directory for `JsonFileStorage` (unset = in-memory)
- `FORM_BUILDER_SESSION_KEY` (default "form-builder-storage")
- `FORM_BUILDER_PERSIST_SESSION=1`: write the session after every change
- `FORM_BUILDER_LOG_LEVEL` (default "WARNING")
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_HISTORY_LIMIT = 10
DEFAULT_TITLE = "Untitled Form"
DEFAULT_SESSION_KEY = "form-builder-storage"


def _env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip()
    return raw or default


@dataclass(frozen=True)
class Settings:
    history_limit: int = DEFAULT_HISTORY_LIMIT
    default_title: str = DEFAULT_TITLE
    storage_dir: Optional[Path] = None
    session_key: str = DEFAULT_SESSION_KEY
    persist_session: bool = False
    log_level: str = "WARNING"


def load_settings(env_dir: Optional[Path] = None) -> Settings:
    if env_dir is not None:
        load_dotenv(env_dir / ".env", override=False)
        load_dotenv(env_dir / ".env.local", override=False)

    history_limit = _env_int("FORM_BUILDER_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT)
    if history_limit < 1:
        history_limit = DEFAULT_HISTORY_LIMIT

    storage_raw = (os.getenv("FORM_BUILDER_STORAGE_DIR") or "").strip()
    return Settings(
        history_limit=history_limit,
        default_title=_env_str("FORM_BUILDER_DEFAULT_TITLE", DEFAULT_TITLE),
        storage_dir=Path(storage_raw).expanduser() if storage_raw else None,
        session_key=_env_str("FORM_BUILDER_SESSION_KEY", DEFAULT_SESSION_KEY),
        persist_session=_env_bool("FORM_BUILDER_PERSIST_SESSION", default=False),
        log_level=_env_str("FORM_BUILDER_LOG_LEVEL", "WARNING").upper(),
    )
