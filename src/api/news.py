"""News API — top headlines passthrough."""

from __future__ import annotations

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from src.news.client import HeadlinesQuery, NewsClient

router = APIRouter(prefix="/news")


@router.get("/headlines")
async def headlines(
    request: Request,
    country: str | None = None,
    category: str | None = None,
    lang: str | None = None,
    max_results: str | None = Query(None, alias="max"),
    q: str | None = None,
) -> JSONResponse:
    client: NewsClient = request.app.state.news_client
    payload = await client.headlines(
        HeadlinesQuery(country=country, category=category, lang=lang, max=max_results, q=q)
    )
    return JSONResponse(payload)
