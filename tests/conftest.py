from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))

from form_builder.config import Settings  # noqa: E402
from form_builder.responses import ResponseLog  # noqa: E402
from form_builder.state.store import FormStore  # noqa: E402
from form_builder.storage import InMemoryStorage  # noqa: E402


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store(storage, settings):
    return FormStore(storage, settings)


@pytest.fixture
def responses(storage, settings):
    return ResponseLog(storage, settings)
