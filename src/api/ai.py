"""AI routes — chat, vision, text summary, speech, image generation.

Each route validates its body, calls the provider through ``LLMGateway`` and
replaces any upstream failure with its own client-safe message.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from src.api.schemas import (
    ChatRequest,
    ImageRequest,
    SpeechRequest,
    TextRequest,
    VisionRequest,
    parse_body,
)
from src.errors import EmptyUpstreamResponse, UpstreamError, ValidationError
from src.llm.gateway import LLMGateway
from src.llm.prompts import (
    build_image_content,
    build_text_instruction,
    build_user_input,
    build_vision_instruction,
)
from src.quota import ImageQuota, user_identity

logger = logging.getLogger(__name__)
router = APIRouter()

DEFAULT_VOICE = "alloy"
DEFAULT_IMAGE_SIZE = "1024x1024"
DEFAULT_IMAGE_QUALITY = "standard"
DEFAULT_IMAGE_STYLE = "vivid"

QUOTA_REMAINING_HEADER = "x-quota-remaining"


def _gateway(request: Request) -> LLMGateway:
    return request.app.state.llm_gateway


def _or_default(value: str | None, default: str) -> str:
    return (value or "").strip() or default


@router.post("/chat")
async def chat(request: Request) -> dict:
    body = await parse_body(request, ChatRequest, "Request must include a text prompt.")
    try:
        message = await _gateway(request).respond(build_user_input(body.prompt))
    except UpstreamError as e:
        raise UpstreamError("Assistant service unavailable. Please try again.") from e
    if not message:
        raise EmptyUpstreamResponse("Assistant response was empty. Please try again.")
    return {"message": message}


@router.post("/vision")
async def vision(request: Request) -> dict:
    """Describe an image (URL, data URI or raw base64) for a blind user."""
    body = await parse_body(request, VisionRequest, "Request must include an image to analyse.")
    image_content = build_image_content(body.image, body.mime_type)
    input_items = build_user_input(build_vision_instruction(body.prompt), image_content)

    gateway = _gateway(request)
    model = (body.model or "").strip() or gateway.config.vision_model
    try:
        message = await gateway.respond(input_items, model=model)
    except UpstreamError as e:
        if e.upstream_status == 400:
            raise ValidationError("The image data provided was invalid.") from e
        raise UpstreamError("Vision service unavailable. Please try again.") from e
    if not message:
        raise EmptyUpstreamResponse("Vision response was empty. Please try again.")
    return {"message": message}


@router.post("/text")
async def text(request: Request) -> dict:
    body = await parse_body(request, TextRequest, "Request must include text to summarise.")
    input_items = build_user_input(build_text_instruction(body.prompt, body.text))
    try:
        message = await _gateway(request).respond(input_items)
    except UpstreamError as e:
        raise UpstreamError("Text summarisation failed. Please try again.") from e
    if not message:
        raise EmptyUpstreamResponse("Summary response was empty. Please try again.")
    return {"message": message}


@router.post("/audio/speech")
async def speech(request: Request) -> Response:
    body = await parse_body(request, SpeechRequest, "Request must include text input.")
    voice = _or_default(body.voice, DEFAULT_VOICE)
    try:
        audio = await _gateway(request).speech(body.input, voice)
    except UpstreamError as e:
        raise UpstreamError("Text-to-speech failed. Please try again.") from e
    return Response(content=audio, media_type="audio/mpeg")


@router.post("/image")
async def image(request: Request) -> JSONResponse:
    """Generate one image, gated by the per-user daily quota.

    Quota is charged only after the provider returned an image.
    """
    body = await parse_body(request, ImageRequest, "Request must include an image prompt.")

    quota: ImageQuota = request.app.state.image_quota
    identity = user_identity(request)
    quota.check(identity)

    url = None
    try:
        url = await _gateway(request).generate_image(
            body.prompt,
            size=_or_default(body.size, DEFAULT_IMAGE_SIZE),
            quality=_or_default(body.quality, DEFAULT_IMAGE_QUALITY),
            style=_or_default(body.style, DEFAULT_IMAGE_STYLE),
        )
    except UpstreamError as e:
        if e.upstream_status == 429:
            raise UpstreamError(
                "Upstream image rate limit hit. Please retry shortly.", status_code=429
            ) from e
        raise UpstreamError("Image generation failed. Please try again.") from e
    finally:
        if not url:
            quota.release(identity)
    if not url:
        raise EmptyUpstreamResponse("Image generation failed. Please try again.")

    record = quota.consume(identity)
    logger.info("Image generated for %s (%d/%d today)", identity, record.count, quota.daily_limit)
    return JSONResponse(
        {"url": url},
        headers={QUOTA_REMAINING_HEADER: str(quota.remaining(identity))},
    )
