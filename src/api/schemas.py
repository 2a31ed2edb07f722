"""Request bodies for the AI routes."""

from __future__ import annotations

from typing import Annotated, TypeVar

from fastapi import Request
from pydantic import BaseModel, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from src.errors import ValidationError

RequiredText = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]

T = TypeVar("T", bound=BaseModel)


class ChatRequest(BaseModel):
    prompt: RequiredText


class VisionRequest(BaseModel):
    image: RequiredText
    prompt: str | None = None
    mime_type: str | None = None
    model: str | None = None


class TextRequest(BaseModel):
    text: RequiredText
    prompt: str | None = None


class SpeechRequest(BaseModel):
    input: RequiredText
    voice: str | None = None


class ImageRequest(BaseModel):
    prompt: RequiredText
    size: str | None = None
    quality: str | None = None
    style: str | None = None


async def parse_body(request: Request, model: type[T], message: str) -> T:
    """Read the JSON body into ``model``; any problem becomes a 400 with ``message``.

    An empty body is treated as ``{}`` so the missing-field message applies.
    """
    raw = await request.body()
    if not raw.strip():
        data: object = {}
    else:
        try:
            data = await request.json()
        except ValueError as e:
            raise ValidationError("Request body must be valid JSON.") from e

    if not isinstance(data, dict):
        raise ValidationError(message)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(message) from e
