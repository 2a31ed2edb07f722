"""Shared fixtures: app wired with test config, client, upstream payload builders."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.config import AppConfig, LimitsConfig, NewsSettings, ServerConfig
from src.main import create_app

API_KEY = "test-shared-secret"
AUTH = {"x-api-key": API_KEY}


class FakeProviderError(Exception):
    """Stands in for a provider SDK error carrying an HTTP status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def responses_payload(*texts: str) -> dict[str, Any]:
    """A Responses API payload with one message per text."""
    return {
        "output": [
            {"type": "message", "content": [{"type": "output_text", "text": t}]} for t in texts
        ]
    }


def make_config(**limits: Any) -> AppConfig:
    return AppConfig(
        server=ServerConfig(service_api_key=API_KEY, max_body_bytes=4096),
        news=NewsSettings(api_key="news-key", base_url="https://news.test/api/v4/top-headlines"),
        limits=LimitsConfig(**{"rate_limit": "1000/minute", "daily_image_limit": 5, **limits}),
    )


# ── fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def config() -> AppConfig:
    return make_config()


@pytest.fixture
def app(config: AppConfig) -> FastAPI:
    return create_app(config)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
