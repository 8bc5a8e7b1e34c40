from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


# Settings are read at import time; keep unit runs away from any real store.
os.environ.setdefault("MONGO_URL", "mongodb://localhost:1")
os.environ.setdefault("OTEL_ENABLED", "false")

# Ensure the repo root is importable (so `import db.*` and `import tests.*` work).
REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture()
def fake_db():
    from tests.store_stub import FakeDatabase

    return FakeDatabase()


@pytest.fixture(autouse=True)
def fresh_logger(monkeypatch):
    # structlog caches a logger (and the stdout it writes to) on first use;
    # give every test its own so capsys sees the events.
    import structlog

    import db.seed

    monkeypatch.setattr(db.seed, "logger", structlog.get_logger())
