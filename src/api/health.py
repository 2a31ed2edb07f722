"""Health check — public, not rate limited."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return {"status": "ok", "timestamp": timestamp.replace("+00:00", "Z")}
