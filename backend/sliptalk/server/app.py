from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from shared.logging import setup_logging
from sliptalk.phrases.gemini import GeminiPhraseGenerator
from sliptalk.phrases.settings import GeminiSettings
from sliptalk.phrases.types import GenerationOutcome
from sliptalk.server.settings import SlipTalkServerSettings

if TYPE_CHECKING:
    from starlette.requests import Request

    from sliptalk.phrases.types import PhraseGenerator

logger = structlog.get_logger()


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def generate_phrases(request: Request) -> JSONResponse:
    """Return three phrases. Failures still return phrases, with a non-200 status."""
    generator: PhraseGenerator = request.app.state.generator
    result = await generator.generate()

    body = [phrase.model_dump() for phrase in result.phrases]
    if result.outcome == GenerationOutcome.OK:
        return JSONResponse(body)

    headers = {"Cache-Control": "no-store"}
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return JSONResponse(body, status_code=result.outcome.http_status, headers=headers)


def create_app(
    settings: SlipTalkServerSettings | None = None,
    gemini_settings: GeminiSettings | None = None,
    generator: PhraseGenerator | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = SlipTalkServerSettings()
    if generator is None:
        generator = GeminiPhraseGenerator(gemini_settings or GeminiSettings())

    routes = [
        Route("/health", health, methods=["GET"], name="health"),
        Route("/api/generate", generate_phrases, methods=["POST"], name="generate_phrases"),
    ]

    app = Starlette(routes=routes)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        expose_headers=["Retry-After"],
    )

    app.state.settings = settings
    app.state.generator = generator

    logger.info("sliptalk server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory sliptalk.server.app:get_app."""
    settings = SlipTalkServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings, gemini_settings=GeminiSettings())
