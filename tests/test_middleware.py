"""Tests for the request body ceiling."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from tests.conftest import AUTH, responses_payload


class TestBodySizeLimit:
    """The test config caps bodies at 4096 bytes."""

    @patch("litellm.aresponses", new_callable=AsyncMock)
    def test_declared_oversized_body_is_413(self, mock_responses, client: TestClient):
        resp = client.post("/chat", json={"prompt": "x" * 5000}, headers=AUTH)

        assert resp.status_code == 413
        assert resp.json() == {"message": "Payload too large. Keep images/text under 16MB."}
        mock_responses.assert_not_called()

    def test_oversized_body_rejected_before_auth(self, client: TestClient):
        resp = client.post("/vision", json={"image": "A" * 5000})
        assert resp.status_code == 413

    @patch("litellm.aresponses", new_callable=AsyncMock)
    def test_streamed_oversized_body_is_413(self, mock_responses, client: TestClient):
        def chunks():
            yield b'{"prompt": "'
            for _ in range(10):
                yield b"x" * 1000
            yield b'"}'

        resp = client.post(
            "/chat", content=chunks(), headers={**AUTH, "content-type": "application/json"}
        )

        assert resp.status_code == 413
        mock_responses.assert_not_called()

    @patch("litellm.aresponses", new_callable=AsyncMock)
    def test_body_under_limit_passes(self, mock_responses, client: TestClient):
        mock_responses.return_value = responses_payload("ok")

        resp = client.post("/chat", json={"prompt": "x" * 1000}, headers=AUTH)

        assert resp.status_code == 200
