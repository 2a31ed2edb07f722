"""Tests for the LiteLLM-backed gateway and Responses payload decoding."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest

from src.errors import UpstreamError
from src.llm.config import LLMConfig
from src.llm.gateway import LLMGateway, decode_response_text
from src.llm.prompts import build_user_input
from tests.conftest import FakeProviderError, responses_payload


@pytest.fixture
def llm_gateway() -> LLMGateway:
    return LLMGateway(
        LLMConfig(
            chat_model="openai/test-chat",
            image_model="openai/test-image",
            audio_model="openai/test-tts",
            api_key="sk-test",
            project_id="proj_123",
            timeout_seconds=12.5,
        )
    )


class TestDecodeResponseText:
    def test_single_output_text(self):
        assert decode_response_text(responses_payload("Hello")) == "Hello"

    def test_text_is_trimmed(self):
        assert decode_response_text(responses_payload("  Hello \n")) == "Hello"

    def test_skips_non_text_parts_and_empty_text(self):
        payload = {
            "output": [
                {"type": "reasoning", "content": []},
                {
                    "type": "message",
                    "content": [
                        {"type": "refusal", "refusal": "no"},
                        {"type": "output_text", "text": "   "},
                        {"type": "output_text", "text": "Second"},
                    ],
                },
            ]
        }
        assert decode_response_text(payload) == "Second"

    def test_no_output_text(self):
        assert decode_response_text({"output": [{"type": "message", "content": []}]}) is None
        assert decode_response_text({"output": []}) is None
        assert decode_response_text({}) is None
        assert decode_response_text(None) is None

    def test_attribute_style_payload(self):
        part = SimpleNamespace(type="output_text", text="From objects")
        response = SimpleNamespace(output=[SimpleNamespace(content=[part])])
        assert decode_response_text(response) == "From objects"

    def test_convenience_output_text_preferred(self):
        response = SimpleNamespace(output_text=" Direct ", output=[])
        assert decode_response_text(response) == "Direct"


class TestRespond:
    @pytest.mark.asyncio
    @patch("litellm.aresponses", new_callable=AsyncMock)
    async def test_passes_model_credentials_and_timeout(self, mock_responses, llm_gateway):
        mock_responses.return_value = responses_payload("Hi")
        items = build_user_input("Hello")

        result = await llm_gateway.respond(items)

        assert result == "Hi"
        kwargs = mock_responses.call_args.kwargs
        assert kwargs["model"] == "openai/test-chat"
        assert kwargs["input"] == items
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["timeout"] == 12.5
        assert kwargs["extra_headers"] == {"OpenAI-Project": "proj_123"}

    @pytest.mark.asyncio
    @patch("litellm.aresponses", new_callable=AsyncMock)
    async def test_model_override(self, mock_responses, llm_gateway):
        mock_responses.return_value = responses_payload("Hi")

        await llm_gateway.respond(build_user_input("Hello"), model="openai/other")

        assert mock_responses.call_args.kwargs["model"] == "openai/other"

    @pytest.mark.asyncio
    @patch("litellm.aresponses", new_callable=AsyncMock)
    async def test_omits_unset_credentials(self, mock_responses):
        mock_responses.return_value = responses_payload("Hi")
        gateway = LLMGateway(LLMConfig())

        await gateway.respond(build_user_input("Hello"))

        kwargs = mock_responses.call_args.kwargs
        assert "api_key" not in kwargs
        assert "extra_headers" not in kwargs

    @pytest.mark.asyncio
    @patch("litellm.aresponses", new_callable=AsyncMock)
    async def test_failure_becomes_upstream_error(self, mock_responses, llm_gateway):
        mock_responses.side_effect = FakeProviderError("bad key sk-live-xyz", 401)

        with pytest.raises(UpstreamError) as exc_info:
            await llm_gateway.respond(build_user_input("Hello"))

        assert exc_info.value.upstream_status == 401
        assert "sk-live-xyz" not in exc_info.value.message

    @pytest.mark.asyncio
    @patch("litellm.aresponses", new_callable=AsyncMock)
    async def test_network_failure_has_no_status(self, mock_responses, llm_gateway):
        mock_responses.side_effect = TimeoutError("timed out")

        with pytest.raises(UpstreamError) as exc_info:
            await llm_gateway.respond(build_user_input("Hello"))

        assert exc_info.value.upstream_status is None


class TestSpeech:
    @pytest.mark.asyncio
    @patch("litellm.aspeech", new_callable=AsyncMock)
    async def test_returns_bytes(self, mock_speech, llm_gateway):
        mock_speech.return_value = Mock(content=b"mp3-bytes")

        audio = await llm_gateway.speech("Hello", "alloy")

        assert audio == b"mp3-bytes"
        kwargs = mock_speech.call_args.kwargs
        assert kwargs["model"] == "openai/test-tts"
        assert kwargs["response_format"] == "mp3"


class TestGenerateImage:
    @pytest.mark.asyncio
    @patch("litellm.aimage_generation", new_callable=AsyncMock)
    async def test_returns_url(self, mock_images, llm_gateway):
        mock_images.return_value = SimpleNamespace(data=[SimpleNamespace(url="https://x/1.png")])

        url = await llm_gateway.generate_image("cat", "1024x1024", "standard", "vivid")

        assert url == "https://x/1.png"
        assert mock_images.call_args.kwargs["n"] == 1

    @pytest.mark.asyncio
    @patch("litellm.aimage_generation", new_callable=AsyncMock)
    async def test_base64_only_becomes_data_url(self, mock_images, llm_gateway):
        mock_images.return_value = {"data": [{"url": None, "b64_json": "iVBORw0K"}]}

        url = await llm_gateway.generate_image("cat", "1024x1024", "standard", "vivid")

        assert url == "data:image/png;base64,iVBORw0K"

    @pytest.mark.asyncio
    @patch("litellm.aimage_generation", new_callable=AsyncMock)
    async def test_empty_data(self, mock_images, llm_gateway):
        mock_images.return_value = {"data": None}

        assert await llm_gateway.generate_image("cat", "1024x1024", "standard", "vivid") is None
