"""FastAPI application exposing the variant comparison endpoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from impactcompare.agents.base import CompletionClient
from impactcompare.agents.orchestrator.agent import OrchestratorAgent
from impactcompare.config import load_settings
from impactcompare.errors import ConfigurationError, ImpactCompareError
from impactcompare.schemas.config import Settings
from impactcompare.schemas.pipeline import AnalysisRequest, AnalysisResult, ErrorResponse
from impactcompare.shared.llm_client import LLMClient

logger = logging.getLogger(__name__)

_CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def create_app(
    settings: Settings | None = None,
    client: CompletionClient | None = None,
) -> FastAPI:
    """Build the app.

    The backend client is created on the first request so a missing API key
    surfaces as an error response rather than a crash at import time.
    """
    app = FastAPI(
        title="ImpactCompare API",
        description="Directional UX-impact comparison of two design variants",
        version="0.1.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=_CORS_HEADERS,
    )
    app.state.settings = settings
    app.state.client = client

    def get_orchestrator() -> OrchestratorAgent:
        if app.state.client is None:
            if app.state.settings is None:
                try:
                    app.state.settings = load_settings()
                except ValidationError as exc:
                    raise ConfigurationError(f"Invalid settings: {exc}") from exc
            app.state.client = LLMClient(app.state.settings)
        return OrchestratorAgent(app.state.client)

    @app.exception_handler(ImpactCompareError)
    async def pipeline_error_handler(request: Request, exc: ImpactCompareError) -> JSONResponse:
        logger.error("Error in analyze-variants: %s", exc)
        body = ErrorResponse(error=str(exc))
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.error("Invalid analyze-variants request: %s", exc.errors())
        body = ErrorResponse(error=f"Invalid request: {exc.errors()}")
        return JSONResponse(status_code=500, content=body.model_dump())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error in analyze-variants")
        body = ErrorResponse(error=f"Unexpected error: {exc}")
        return JSONResponse(status_code=500, content=body.model_dump())

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/analyze-variants",
        response_model=AnalysisResult,
        responses={
            402: {"model": ErrorResponse},
            429: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            504: {"model": ErrorResponse},
        },
    )
    async def analyze_variants(request: AnalysisRequest) -> AnalysisResult:
        orchestrator = get_orchestrator()
        try:
            return await orchestrator.run(request)
        except ImpactCompareError:
            raise
        except Exception as exc:
            # Unknown failures still answer with the {error, details} envelope
            logger.exception("Unexpected failure while analyzing variants")
            raise ImpactCompareError(f"Unexpected error: {exc}") from exc

    return app
