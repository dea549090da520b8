import os
from datetime import datetime, timezone

import pytest


@pytest.fixture(autouse=True)
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir and clears REVUE_* variables."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("REVUE_"):
            monkeypatch.delenv(key)
    return home


@pytest.fixture
def now():
    """A fixed reference moment at the end of a month."""
    return datetime(2026, 1, 31, 14, 30, tzinfo=timezone.utc)
