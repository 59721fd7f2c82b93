"""HTTP entry point: POST /analyze and POST /rewrite.

Validation errors answer 400, unparseable model output 502, a provider
deadline 504 and every other failure 500. Bodies are ``{"error": str}``;
raw model text never leaves the server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from resume_analyzer.clients.llm_client import ModelOutput, ProviderAdapter
from resume_analyzer.config import AppConfig, ProviderCredentials, load_config, load_credentials
from resume_analyzer.errors import (
    DeadlineExceededError,
    InputValidationError,
    PhaseParseError,
    ResumeAnalyzerError,
)
from resume_analyzer.models.input import AnalysisInput, RewriteRequest
from resume_analyzer.pipeline.orchestrator import ResumeAnalyzer

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"
PROVIDER_HEADER = "X-Resume-Provider"

FAILURE_MESSAGES = {
    "/analyze": "Failed to analyze resume. Please try again.",
    "/rewrite": "Failed to rewrite resume. Please try again.",
}


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _failure_message(request: Request) -> str:
    return FAILURE_MESSAGES.get(request.url.path, "Request failed. Please try again.")


def _provider_headers(exc: Exception) -> dict | None:
    provider = getattr(exc, "provider", None)
    return {PROVIDER_HEADER: provider} if provider else None


def _stream_response(output: ModelOutput) -> StreamingResponse:
    return StreamingResponse(
        output.result,
        media_type="text/plain; charset=utf-8",
        headers={PROVIDER_HEADER: output.provider, "Cache-Control": "no-cache"},
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return _error(400, f"{location}: {message}" if location else message)

    @app.exception_handler(InputValidationError)
    async def _invalid_input(request: Request, exc: InputValidationError):
        return _error(400, str(exc))

    @app.exception_handler(PhaseParseError)
    async def _invalid_model_json(request: Request, exc: PhaseParseError):
        logger.error(
            "%s phase parse failure (provider=%s): %s",
            exc.phase, exc.provider, type(exc.original_error).__name__,
        )
        return _error(
            502,
            f"The {exc.phase} response was invalid JSON. Please retry.",
            _provider_headers(exc),
        )

    @app.exception_handler(DeadlineExceededError)
    async def _deadline(request: Request, exc: DeadlineExceededError):
        logger.error("%s: %s", request.url.path, exc)
        return _error(504, "The AI provider took too long to respond. Please try again.",
                      _provider_headers(exc))

    @app.exception_handler(ResumeAnalyzerError)
    async def _failure(request: Request, exc: ResumeAnalyzerError):
        logger.error("%s failed: %s", request.url.path, exc)
        return _error(500, _failure_message(request), _provider_headers(exc))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.error(
            "%s failed unexpectedly: %s", request.url.path, type(exc).__name__, exc_info=exc,
        )
        return _error(500, _failure_message(request))


def create_app(
    config: AppConfig | None = None,
    credentials: ProviderCredentials | None = None,
    adapter: ProviderAdapter | None = None,
) -> FastAPI:
    """Build the API. Credentials are read once here unless injected."""
    config = config or load_config()
    if adapter is None:
        credentials = credentials or load_credentials()
        adapter = ProviderAdapter(
            credentials,
            timeout=config.llm.timeout,
            max_attempts=config.llm.max_attempts,
        )
    analyzer = ResumeAnalyzer(adapter, llm_config=config.llm, credentials=credentials)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await adapter.aclose()

    app = FastAPI(
        title="Resume Analyzer API",
        description="Two-phase résumé analysis and rewrite over OpenAI and Gemini",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.analyzer = analyzer
    if config.server.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.server.cors_origins),
            allow_methods=["POST", "GET"],
            allow_headers=["*"],
            expose_headers=[PROVIDER_HEADER],
        )
    register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "resume-analyzer"}

    @app.post("/analyze")
    async def analyze(body: AnalysisInput, stream: bool = False):
        """Analysis phase. ``?stream=true`` returns the raw model text as it arrives."""
        if stream:
            return _stream_response(await analyzer.stream_analysis(body))
        outcome = await analyzer.analyze(body)
        return JSONResponse(
            content=outcome.data.to_payload(),
            headers={PROVIDER_HEADER: outcome.provider},
        )

    @app.post("/rewrite")
    async def rewrite(body: RewriteRequest, stream: bool = False):
        """Rewrite phase; requires the analysis result from /analyze."""
        if stream:
            return _stream_response(await analyzer.stream_rewrite(body))
        outcome = await analyzer.rewrite(body)
        return JSONResponse(
            content=outcome.data.to_payload(),
            headers={PROVIDER_HEADER: outcome.provider},
        )

    return app


def _build_default_app() -> FastAPI:
    load_dotenv()
    return create_app()


app = _build_default_app()
