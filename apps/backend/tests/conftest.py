"""
Pytest configuration and fixtures for the ChefAI backend tests.
"""

import os
from datetime import datetime
from typing import List, Optional, Tuple
from unittest.mock import MagicMock

import pytest

# Set test environment before importing chefai modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-ai-key")
os.environ.setdefault("SENDGRID_API_KEY", "test-sendgrid-key")
os.environ.setdefault("EMAIL_FROM", "noreply@chefai.com.br")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from chefai.ai_gateway import RecipeGateway  # noqa: E402
from chefai.auth.service import AccessService  # noqa: E402
from chefai.config import load_settings  # noqa: E402
from chefai.database import init_db, make_engine, make_session_factory  # noqa: E402
from chefai.main import create_app  # noqa: E402
from chefai.models import Subscriber  # noqa: E402


class FakeMailer:
    """Records every message instead of calling SendGrid."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, to_email: str, subject: str, html: str) -> Tuple[bool, str]:
        self.sent.append((to_email, subject, html))
        return (True, "accepted") if self.ok else (False, "500: boom")


class Clock:
    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Optional[dict] = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or ("" if payload is None else str(payload))
        self.headers = {}

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def chat_reply(content) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})


@pytest.fixture
def settings():
    return load_settings()


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def add_subscriber(session_factory):
    def _add(email: str, plan: str = "master", status: str = "active") -> None:
        with session_factory() as s, s.begin():
            s.add(Subscriber(email=email, plan=plan, status=status))
    return _add


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def clock():
    return Clock(datetime(2026, 3, 1, 12, 0, 0))


@pytest.fixture
def access_service(session_factory, mailer, settings, clock):
    return AccessService(session_factory, mailer, settings, now=clock)


@pytest.fixture
def http():
    """Stands in for the requests.Session used by RecipeGateway."""
    return MagicMock()


@pytest.fixture
def gateway(settings, http):
    return RecipeGateway(settings, session=http)


@pytest.fixture
def client(settings, access_service, gateway):
    app = create_app(settings, access_service=access_service, gateway=gateway)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def sample_recipe():
    return {
        "name": "Omelete de Queijo",
        "description": "Omelete rápida para o café da manhã",
        "time": "10 min",
        "calories": 320,
        "servings": 1,
        "difficulty": "Fácil",
        "ingredients": ["2 ovos", "50 g de queijo", "sal a gosto"],
        "steps": ["Bata os ovos", "Adicione o queijo", "Cozinhe em fogo baixo"],
        "tips": "Sirva quente",
    }
