"""
Trading Chart Analyzer - Chart Screenshot Analysis API
=======================================================
Upload a chart screenshot, let Gemini Vision read it, and get back
PAIR / TIMEFRAME / TREND / SIGNAL as JSON.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings
from .errors import AnalyzerError
from .logging_config import configure_logging
from .models import AnalysisResponse, UploadedImage
from .prompt import load_prompt
from .service import analyze_chart, error_response
from .vision import GeminiVisionClient, VisionClient

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def json_response(body: AnalysisResponse, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=body.to_payload(), status_code=status_code, headers=CORS_HEADERS)


def envelope_error(message: str, status_code: int) -> JSONResponse:
    return json_response(AnalysisResponse(success=False, analysis=None, error=message), status_code)


def create_app(settings: Optional[Settings] = None, vision_client: Optional[VisionClient] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_file)

    # ============================================================
    # STARTUP
    # ============================================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Fail at process start rather than on the first upload
        _analysis_context(app)
        logger.info("Chart analyzer ready (model: %s)", app.state.vision_client.model_name)
        yield

    app = FastAPI(title="Trading Chart Analyzer API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.vision_client = vision_client
    app.state.prompt = None

    # Fixed CORS headers on every response; preflights reach the OPTIONS routes
    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    # ============================================================
    # ERROR HANDLERS
    # ============================================================

    @app.exception_handler(AnalyzerError)
    async def handle_analyzer_error(request: Request, exc: AnalyzerError):
        if exc.status_code >= 500:
            logger.error("[API] %s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("[API] %s %s rejected: %s", request.method, request.url.path, exc.message)
        return json_response(error_response(exc), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("[API] Invalid request to %s: %s", request.url.path, exc.errors())
        return envelope_error("Invalid request: expected multipart/form-data with an image in the 'file' field", 400)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return envelope_error(str(exc.detail), exc.status_code)

    # ============================================================
    # ROUTES
    # ============================================================

    @app.get("/", include_in_schema=False)
    async def index():
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    @app.options("/analyze", include_in_schema=False)
    @app.options("/api/analyze", include_in_schema=False)
    async def analyze_preflight():
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.post("/analyze", include_in_schema=False)
    @app.post("/api/analyze")
    async def analyze(request: Request, file: Optional[UploadFile] = File(default=None)):
        """POST /api/analyze - chart screenshot -> PAIR, TIMEFRAME, TREND, SIGNAL"""
        upload = None
        if file is not None:
            upload = UploadedImage(
                filename=file.filename,
                content_type=file.content_type,
                # One byte past the ceiling is enough for validate_upload to reject it
                data=await file.read(request.app.state.settings.max_upload_bytes + 1),
            )
            logger.info("[API] File received: %s %s %d bytes", file.filename, file.content_type, upload.size)

        result = await run_in_threadpool(
            analyze_chart,
            upload,
            lambda: _analysis_context(request.app),
            request.app.state.settings.max_upload_bytes,
        )
        return json_response(result)

    @app.get("/api/health")
    async def health_check(request: Request):
        """Health check endpoint"""
        client = request.app.state.vision_client
        configured = client is not None or settings.configured
        return {
            "status": "healthy",
            "model": (client.model_name if client else settings.model_name) if configured else "none",
            "configured": configured,
            "version": __version__,
            "timestamp": datetime.now().isoformat(),
        }

    return app


def _analysis_context(app: FastAPI) -> Tuple[VisionClient, str]:
    """Vision client and prompt for ``app``, built on first use."""
    settings: Settings = app.state.settings
    if app.state.prompt is None:
        app.state.prompt = load_prompt(settings.prompt_file)
    if app.state.vision_client is None:
        app.state.vision_client = GeminiVisionClient.from_settings(settings)
    return app.state.vision_client, app.state.prompt


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Use PORT from environment (Railway/Heroku) or default to 8002
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
