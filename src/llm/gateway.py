"""LLM Gateway — upstream AI provider calls backed by LiteLLM."""

from __future__ import annotations

import logging
import time
from typing import Any

import litellm

from src.errors import UpstreamError
from src.llm.config import LLMConfig

logger = logging.getLogger(__name__)


def _field(obj: Any, name: str) -> Any:
    """Read ``name`` from a provider object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def decode_response_text(response: Any) -> str | None:
    """Extract the answer from a Responses API payload.

    Prefers the ``output_text`` convenience string; otherwise walks
    ``output[].content[]`` for the first non-empty ``output_text`` part.
    Returns None when the payload carries no usable text.
    """
    if response is None:
        return None

    output_text = _field(response, "output_text")
    if isinstance(output_text, str) and output_text.strip():
        return output_text.strip()

    for item in _field(response, "output") or []:
        for part in _field(item, "content") or []:
            if _field(part, "type") != "output_text":
                continue
            text = _field(part, "text")
            if isinstance(text, str) and text.strip():
                return text.strip()
    return None


def _upstream_status(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


class LLMGateway:
    """Thin async interface to the AI provider: responses, speech, images.

    Provider failures are logged with their detail and re-raised as
    :class:`UpstreamError`, which carries no upstream text for the client.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        # Suppress litellm verbose logging
        litellm.set_verbose = False

    def _common_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"timeout": self.config.timeout_seconds}
        if self.config.api_key:
            kwargs["api_key"] = self.config.api_key
        if self.config.project_id:
            kwargs["extra_headers"] = {"OpenAI-Project": self.config.project_id}
        return kwargs

    def _failed(
        self, call_type: str, model: str, start_time: float, exc: Exception
    ) -> UpstreamError:
        latency_ms = int((time.monotonic() - start_time) * 1000)
        status = _upstream_status(exc)
        logger.error(
            "LLM %s call failed (model=%s, status=%s, latency_ms=%d): %s",
            call_type,
            model,
            status,
            latency_ms,
            exc,
        )
        return UpstreamError(upstream_status=status)

    async def respond(
        self, input_items: list[dict[str, Any]], model: str | None = None
    ) -> str | None:
        """Call the Responses endpoint and decode its text answer.

        Args:
            input_items: Responses API ``input`` (user message with content blocks)
            model: Model override (defaults to the chat model)
        """
        used_model = model or self.config.chat_model
        start_time = time.monotonic()
        try:
            response = await litellm.aresponses(
                model=used_model,
                input=input_items,
                **self._common_kwargs(),
            )
        except Exception as e:
            raise self._failed("responses", used_model, start_time, e) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        logger.info("LLM responses call ok (model=%s, latency_ms=%d)", used_model, latency_ms)
        return decode_response_text(response)

    async def speech(self, text: str, voice: str) -> bytes:
        """Synthesize ``text`` and return the raw MP3 bytes."""
        model = self.config.audio_model
        start_time = time.monotonic()
        try:
            response = await litellm.aspeech(
                model=model,
                input=text,
                voice=voice,
                response_format="mp3",
                **self._common_kwargs(),
            )
            audio = response.content
        except Exception as e:
            raise self._failed("speech", model, start_time, e) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            "LLM speech call ok (model=%s, bytes=%d, latency_ms=%d)", model, len(audio), latency_ms
        )
        return audio

    async def generate_image(
        self, prompt: str, size: str, quality: str, style: str
    ) -> str | None:
        """Generate exactly one image and return a URL for it.

        Falls back to a ``data:`` URL when the provider returns base64 only.
        Returns None when the response carries neither.
        """
        model = self.config.image_model
        start_time = time.monotonic()
        try:
            response = await litellm.aimage_generation(
                model=model,
                prompt=prompt,
                n=1,
                size=size,
                quality=quality,
                style=style,
                **self._common_kwargs(),
            )
        except Exception as e:
            raise self._failed("image", model, start_time, e) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        logger.info("LLM image call ok (model=%s, latency_ms=%d)", model, latency_ms)

        data = _field(response, "data") or []
        if not data:
            return None
        image = data[0]
        url = _field(image, "url")
        if url:
            return url
        b64 = _field(image, "b64_json")
        if b64:
            return f"data:image/png;base64,{b64}"
        return None
