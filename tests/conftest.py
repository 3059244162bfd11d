from __future__ import annotations

import pytest

from coderunner import config


@pytest.fixture
def local_sandbox(monkeypatch):
    """Run programs with the local interpreter instead of Docker."""
    monkeypatch.setattr(config, "SANDBOX_BACKEND", "subprocess")
    monkeypatch.setattr(config, "RUN_TIMEOUT_SECONDS", 20.0)
