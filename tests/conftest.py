import os

import pytest
from fastapi.testclient import TestClient

# sunny.main crée une app au moment de l'import : on évite qu'elle écrive ./sunny.db
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUNNY_DEMO_MODE", "true")

from sunny.core.config import get_settings  # noqa: E402
from sunny.main import create_app  # noqa: E402


@pytest.fixture
def app(tmp_path, monkeypatch):
    """
    App isolée : base SQLite temporaire par test, mode démo forcé (aucun appel OpenAI).
    """
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("APP_NAME", "Sunny API (tests)")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'sunny_test.db'}")
    monkeypatch.setenv("SUNNY_DEMO_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost")

    # IMPORTANT: vider le cache des settings pour prendre en compte les env
    get_settings.cache_clear()
    application = create_app()
    yield application
    application.dependency_overrides.clear()
    get_settings.cache_clear()


@pytest.fixture
def test_client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_user(test_client):
    counter = {"n": 0}

    def _make(name="Mia", email=None, password="sunshine123"):
        counter["n"] += 1
        email = email or f"kid{counter['n']}@example.com"
        r = test_client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
        assert r.status_code == 201, r.text
        return r.json()

    return _make


class FakeLLM:
    """
    Remplace LLMService : réponses JSON / texte prédéfinies, ou exception.
    """

    def __init__(self, json_payloads=None, text="Hi from Sunny!", error=None):
        self.json_payloads = list(json_payloads or [])
        self.text = text
        self.error = error
        self.calls = []

    def is_available(self):
        return True

    def complete(self, messages, **kwargs):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return self.text

    def complete_json(self, messages, **kwargs):
        self.calls.append(messages)
        if self.error:
            raise self.error
        if not self.json_payloads:
            raise ValueError("no payload")
        return self.json_payloads.pop(0)


@pytest.fixture
def fake_llm_factory():
    return FakeLLM
