"""LLM configuration — model selection, credentials, timeout."""

from __future__ import annotations

from dataclasses import dataclass

from src.config import AppConfig


@dataclass
class LLMConfig:
    chat_model: str = "openai/gpt-4.1-mini"
    vision_model: str = "openai/gpt-4.1"
    audio_model: str = "openai/gpt-4o-mini-tts"
    image_model: str = "openai/dall-e-3"
    api_key: str = ""
    project_id: str = ""
    timeout_seconds: float = 60.0

    @classmethod
    def from_app_config(cls, config: AppConfig) -> LLMConfig:
        return cls(
            chat_model=config.openai.chat_model,
            vision_model=config.openai.vision_model,
            audio_model=config.openai.audio_model,
            image_model=config.openai.image_model,
            api_key=config.openai.api_key,
            project_id=config.openai.project_id,
            timeout_seconds=config.openai.timeout_seconds,
        )
