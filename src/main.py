"""ThirdEye Gateway — FastAPI application entry point."""

from __future__ import annotations

import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from src.api.ai import router as ai_router
from src.api.health import router as health_router
from src.api.news import router as news_router
from src.config import AppConfig
from src.errors import GatewayError, NotFound, ValidationError
from src.llm.config import LLMConfig
from src.llm.gateway import LLMGateway
from src.middleware import ApiKeyMiddleware, BodySizeLimitMiddleware
from src.news.client import NewsClient
from src.quota import ImageQuota
from src.ratelimit import RateLimitMiddleware, build_limiter

logger = logging.getLogger(__name__)


def _init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry SDK if a DSN is configured and not in development."""
    if not dsn or environment == "development":
        return
    sentry_sdk.init(
        dsn,
        environment=environment,
        send_default_pii=False,
        traces_sample_rate=0,
        send_client_reports=False,
        auto_session_tracking=False,
    )


def _error_response(error: GatewayError) -> JSONResponse:
    return JSONResponse({"message": error.message}, status_code=error.status_code)


async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return _error_response(exc)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _error_response(NotFound())
    return JSONResponse(
        {"message": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers
    )


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error_response(ValidationError())


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("[unhandled] %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(GatewayError())


def _register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None:
        config = AppConfig.from_yaml()

    _init_sentry(config.sentry_dsn, config.environment)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.server.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    is_dev = config.environment == "development"

    app = FastAPI(
        title="ThirdEye Gateway",
        version="1.0.0",
        description="Credential-shielding gateway for AI and news providers",
        docs_url="/docs" if is_dev else None,
        redoc_url=None,
        openapi_url="/openapi.json" if is_dev else None,
    )

    app.state.config = config
    app.state.llm_gateway = LLMGateway(LLMConfig.from_app_config(config))
    app.state.news_client = NewsClient.from_app_config(config)
    app.state.image_quota = ImageQuota(config.limits.daily_image_limit)

    app.state.limiter = build_limiter(config.limits)

    if not config.server.service_api_key.strip():
        logger.error("No shared secret configured; secured routes will answer 500")
    if not config.news.api_key.strip():
        logger.warning("No news API key configured; /news routes will answer 503")

    # Added innermost first: proxy headers -> rate limit -> CORS -> body ceiling -> auth
    app.add_middleware(ApiKeyMiddleware, api_key=config.server.service_api_key)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=config.server.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware, limiter=app.state.limiter, rate_limit=config.limits.rate_limit
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=config.server.trusted_proxies)

    _register_exception_handlers(app)

    # Register routes
    app.include_router(health_router)
    app.include_router(ai_router)
    app.include_router(news_router)

    return app


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    config = AppConfig.from_yaml()
    app = create_app(config)

    logger.info("ThirdEye gateway listening on port %d", config.server.port)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level,
        # Forwarded headers are resolved by the app itself
        proxy_headers=False,
    )


# Default app instance for uvicorn
app = create_app()
