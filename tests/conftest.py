from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from config.settings import Settings


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, invalid_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeUpstream:
    """Stands in for Gemini; records every outbound POST."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.client_kwargs: List[Dict[str, Any]] = []
        self.response: FakeResponse = FakeResponse(payload=reply_payload("hello"))
        self.error: Optional[BaseException] = None

    def reply(self, status_code: int = 200, payload: Any = None, invalid_json: bool = False) -> None:
        self.response = FakeResponse(status_code, payload, invalid_json)

    def fail(self, error: BaseException) -> None:
        self.error = error


def reply_payload(text: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


@pytest.fixture
def upstream(monkeypatch) -> FakeUpstream:
    fake = FakeUpstream()

    class AsyncClient:
        def __init__(self, *a, **kw):
            fake.client_kwargs.append(kw)

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, **kw):
            fake.calls.append({"url": url, **kw})
            if fake.error is not None:
                raise fake.error
            return fake.response

    monkeypatch.setattr("httpx.AsyncClient", AsyncClient)
    return fake


@pytest.fixture
def static_dir(tmp_path):
    (tmp_path / "gemini_chat.html").write_text("<html><body>chat</body></html>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log('hi');", encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(static_dir) -> Settings:
    return Settings(
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        gemini_api_base_url="https://upstream.test/v1beta",
        system_prompt="Be brief.",
        upstream_timeout=None,
        static_dir=static_dir,
        index_document="gemini_chat.html",
        cors_allow_origins=["*"],
    )


@pytest.fixture
def client(settings) -> TestClient:
    return TestClient(create_app(settings))
