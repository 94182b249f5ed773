from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, Callable

import httpx
import pytest

from assistify.config import Settings
from assistify.database import build_engine, build_sessionmaker, create_tables
from assistify.services.storage import Storage

TEST_API_KEY = "sk-or-test-0123456789"
TEST_JWT_SECRET = "test-jwt-secret-that-is-long-enough-for-hs256"


def make_settings(tmp_path, **overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'assistify-test.db'}",
        "jwt_secret": TEST_JWT_SECRET,
        "openrouter_api_key": TEST_API_KEY,
        "generation_timeout_seconds": 5.0,
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def unconfigured_settings(tmp_path) -> Settings:
    return make_settings(tmp_path, openrouter_api_key=None)


def completion_body(content: str) -> dict:
    return {
        "id": "gen-1",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def json_transport(
    status_code: int = 200,
    body: Any = None,
    requests: list | None = None,
) -> httpx.MockTransport:
    """A transport answering every request with the same JSON response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status_code, json=body if body is not None else {})

    return httpx.MockTransport(handler)


def raising_transport(exc_factory: Callable[[httpx.Request], Exception]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_factory(request)

    return httpx.MockTransport(handler)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


class RecordingMailer:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.messages.append((to, subject, body))

    @property
    def last_code(self) -> str:
        return self.messages[-1][2]


@asynccontextmanager
async def open_storage(settings: Settings, storage_class: type = Storage):
    engine = build_engine(settings)
    await create_tables(engine)
    try:
        yield storage_class(build_sessionmaker(engine))
    finally:
        await engine.dispose()
