import pytest
from fastapi.testclient import TestClient

import main

CONFIG_KEYS = (
    "OPENAI_API_KEY",
    "GROK_API_KEY",
    "OPTIMIZE_SERVICE",
    "OPTIMIZE_MODEL",
    "OPTIMIZE_TIMEOUT",
)


@pytest.fixture
def env_path(tmp_path, monkeypatch):
    """Point the settings file at a temp dir and clear optimizer config."""
    path = tmp_path / ".env"
    monkeypatch.setattr(main, "ENV_PATH", path)
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
    return path


@pytest.fixture
def client(env_path):
    return TestClient(main.app)
