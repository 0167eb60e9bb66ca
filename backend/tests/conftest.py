"""Pytest configuration and fixtures."""

import json
import os

# Settings are read at import time; configure before importing the app
os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_PERSONALITY_QUESTIONS"] = "false"
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from learnpath.api.deps import get_llm_client  # noqa: E402
from learnpath.db.base import Base  # noqa: E402
from learnpath.db.session import build_engine, build_session_factory, get_store  # noqa: E402
from learnpath.db.store import DocumentStore  # noqa: E402
from learnpath.main import app  # noqa: E402
from learnpath.services.llm import LLMClient  # noqa: E402

PYTHON_QUESTIONS = [
    {"question": "How much Python have you written before?", "options": ["None", "A little", "A lot"]},
    {"question": "What do you want to build with Python?", "options": ["Web apps", "Data analysis", "Automation"]},
    {"question": "How do you like to learn?", "options": ["Videos", "Reading", "Projects"]},
    {"question": "How many hours a week can you study?", "options": ["1-2", "3-5", "6+"]},
    {"question": "Which area interests you most?", "options": ["Async", "Typing", "Testing", "Packaging"]},
]

PYTHON_SUBTOPICS = [
    "Python syntax basics",
    "Functions and modules",
    "Working with files",
    "Testing with pytest",
    "Building a small web API",
]

PYTHON_ANSWERS = ["A little", "Web apps", "Projects", "3-5", "Testing"]


def questions_reply(questions: list[dict] | None = None) -> str:
    return json.dumps({"questions": questions if questions is not None else PYTHON_QUESTIONS})


def subtopics_reply(subtopics: list[str] | None = None) -> str:
    return json.dumps({"subtopics": subtopics if subtopics is not None else PYTHON_SUBTOPICS})


class FakeLLM(LLMClient):
    """
    Scripted stand-in for the Anthropic client.

    Replies are consumed in order; an exception instance in the queue is
    raised instead of returned. Every (system, prompt) pair is recorded.
    """

    def __init__(self):
        self.model = "fake-model"
        self.max_tokens = 100
        self.replies: list[str | Exception] = []
        self.calls: list[tuple[str, str]] = []

    def queue(self, *replies: str | Exception) -> None:
        self.replies.extend(replies)

    async def complete(self, system: str, prompt: str) -> str:
        self.calls.append((system, prompt))
        if not self.replies:
            raise AssertionError("FakeLLM has no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def aclose(self) -> None:
        pass


@pytest.fixture
async def store(tmp_path) -> AsyncGenerator[DocumentStore, None]:
    """Document store on a fresh SQLite file per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'learnpath.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield DocumentStore(build_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
async def client(store: DocumentStore, fake_llm: FakeLLM) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


async def signup_and_login(
    client: AsyncClient,
    *,
    name: str = "Ada Lovelace",
    username: str = "ada",
    email: str = "ada@example.com",
    password: str = "analytical-engine",
) -> dict:
    """Create an account and log in; the client keeps the session cookie."""
    res = await client.post(
        "/api/signup",
        json={"name": name, "username": username, "email": email, "password": password},
    )
    assert res.status_code == 201, res.text
    res = await client.post("/api/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["user"]


@pytest.fixture
async def auth_client(client: AsyncClient) -> AsyncClient:
    """Client already logged in as 'ada'."""
    await signup_and_login(client)
    return client
