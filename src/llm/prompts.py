"""Default instructions and Responses API input builders."""

from __future__ import annotations

import re
from typing import Any

from src.errors import ValidationError

DEFAULT_VISION_PROMPT = (
    "Describe the image for a blind user. Give a concise scene summary then list key "
    "objects with position and colours. Mention any signs, hazards, or people. "
    "Keep it under 180 words."
)

DEFAULT_TEXT_PROMPT = (
    "Summarise the following text for accessibility. Highlight key actions, people, "
    "and any warnings."
)

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def build_image_content(image: str, mime_type: str | None = None) -> dict[str, str]:
    """Build an ``input_image`` content block.

    URLs and data URIs pass through verbatim; anything else is treated as raw
    base64 and wrapped into a data URI.
    """
    if not isinstance(image, str) or not image.strip():
        raise ValidationError("Missing or invalid image payload.")
    trimmed = image.strip()

    if _URL_RE.match(trimmed):
        return {"type": "input_image", "image_url": trimmed}

    if trimmed.startswith("data:"):
        _, comma, payload = trimmed.partition(",")
        if not comma:
            raise ValidationError("Malformed data URI image payload.")
        if not payload.strip():
            raise ValidationError("Empty image payload.")
        return {"type": "input_image", "image_url": trimmed}

    mime = (mime_type or "").strip() or DEFAULT_IMAGE_MIME_TYPE
    return {"type": "input_image", "image_url": f"data:{mime};base64,{trimmed}"}


def build_user_input(text: str, *extra_content: dict[str, Any]) -> list[dict[str, Any]]:
    """Wrap text (and optional extra blocks) as a single user message."""
    content: list[dict[str, Any]] = [{"type": "input_text", "text": text}]
    content.extend(extra_content)
    return [{"role": "user", "content": content}]


def build_vision_instruction(prompt: str | None) -> str:
    return (prompt or "").strip() or DEFAULT_VISION_PROMPT


def build_text_instruction(prompt: str | None, text: str) -> str:
    instruction = (prompt or "").strip() or DEFAULT_TEXT_PROMPT
    return f"{instruction}\n\n{text.strip()}"
