"""LLM gateway — AI provider interface backed by LiteLLM."""

from src.llm.gateway import LLMGateway
from src.llm.config import LLMConfig

__all__ = ["LLMGateway", "LLMConfig"]
