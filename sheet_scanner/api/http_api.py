"""
HTTP API adapter for the sheet scanner.

Architectural role:
- Expose the answer-sheet analysis endpoint and a static service description.
- Enforce adapter-level method, presence, type and size validation.
- Delegate model work to `sheet_scanner.llm.service.AnalysisClient`.
- Normalize every outcome to the `{"success": ...}` response envelope.

Endpoint responsibilities:
- `GET /`, `GET /api/index`: describe the service and its endpoint.
- `POST /api/analyze-sheet`: validate and stage the `image` part, analyze it,
  return the Answer Map.
- `OPTIONS /api/analyze-sheet`: empty 200 preflight reply.

API request lifecycle (`POST /api/analyze-sheet`):
1. Reject bodies whose `Content-Length` exceeds the upload ceiling.
2. Parse the multipart form and fetch the `image` part.
3. Stage the part (type check, streamed size check, unique temp file).
4. Run the blocking analysis call in a worker thread.
5. Remove the staged file and return the envelope.

Input validation behavior:
- Method other than POST/OPTIONS -> HTTP 405.
- Missing `image` part -> HTTP 400.
- Disallowed content type -> HTTP 400.
- Oversized file -> HTTP 400.

Error handling strategy:
- `InputRejected` -> 4xx envelope with its message.
- `AnalysisError` and anything unexpected -> generic 500 envelope; the cause is
  logged, and echoed as `error` only in development mode.

Side effects:
- One staged file per accepted upload, removed before the response is sent.
- One outbound model call per accepted upload.
- No application is built at import time; servers use the `create_app` factory.
- Every response carries permissive cross-origin headers.
"""

import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from sheet_scanner import __version__
from sheet_scanner.api.uploads import check_content_length, stage_upload
from sheet_scanner.config import Settings, load_settings
from sheet_scanner.errors import AnalysisError, InputRejected
from sheet_scanner.llm.service import AnalysisClient


logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze-sheet"
IMAGE_FIELD = "image"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

NO_FILE_MESSAGE = "No image file uploaded"
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
ANALYSIS_FAILED_MESSAGE = "Failed to analyze the image. Please try again."

# Every method is routed here so disallowed ones get the envelope, not FastAPI's default.
ANALYZE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# ============================================================
# Response envelopes
# ============================================================

def success_response(data) -> JSONResponse:
    return JSONResponse(status_code=200, content={"success": True, "data": data})


def failure_response(status_code: int, message: str, error: str | None = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


def service_description() -> dict:
    """Static description served by the index endpoints."""
    return {
        "success": True,
        "message": "MCQ Scanner Backend API",
        "version": __version__,
        "endpoints": {
            "analyzeSheet": {
                "url": ANALYZE_PATH,
                "method": "POST",
                "description": "Analyze MCQ answer sheet image",
                "parameters": {
                    IMAGE_FIELD: "Form-data file (JPEG, PNG, GIF)"
                },
            }
        },
    }


# ============================================================
# Analysis pipeline
# ============================================================

async def _analyze_upload(request: Request, settings: Settings, client) -> JSONResponse:
    """Run validation, staging and analysis for one POST request."""
    check_content_length(request.headers.get("content-length"), settings)

    try:
        form = await request.form()
    except StarletteHTTPException as err:
        logger.info("Rejected unparsable multipart body: %s", err.detail)
        raise InputRejected(NO_FILE_MESSAGE) from err

    try:
        upload = form.get(IMAGE_FIELD)
        if not isinstance(upload, UploadFile):
            logger.info("Request carried no %r file part", IMAGE_FIELD)
            raise InputRejected(NO_FILE_MESSAGE)

        async with stage_upload(upload, settings) as staged_path:
            answer_map = await asyncio.to_thread(client.analyze_image, staged_path)
    finally:
        await form.close()

    logger.info("Analyzed sheet: %d questions detected", len(answer_map))
    return success_response(answer_map)


def _analysis_failure(settings: Settings, err: Exception) -> JSONResponse:
    error = str(err) if settings.is_development else None
    return failure_response(500, ANALYSIS_FAILED_MESSAGE, error)


# ============================================================
# Application factory
# ============================================================

def create_app(settings: Settings | None = None, analysis_client=None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Process configuration; loaded from the environment when omitted.
        analysis_client: Object exposing `analyze_image(path)`; an
            `AnalysisClient` bound to `settings` is created when omitted.
    """
    settings = settings or load_settings()

    app = FastAPI(title="MCQ Scanner Backend API", version=__version__)
    app.state.settings = settings
    app.state.analysis_client = analysis_client or AnalysisClient(settings)

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        # Runs outside the middleware stack, so CORS headers are set here.
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = _analysis_failure(request.app.state.settings, exc)
        response.headers.update(CORS_HEADERS)
        return response

    @app.get("/")
    @app.get("/api/index")
    def index():
        """Return the static service description."""
        return service_description()

    @app.api_route(ANALYZE_PATH, methods=ANALYZE_METHODS)
    async def analyze_sheet(request: Request):
        """
        Analyze an uploaded answer-sheet image.

        The staged file never outlives this handler: `stage_upload` removes it
        on success, on validation failure, and on analysis failure.
        """
        if request.method == "OPTIONS":
            return Response(status_code=200)

        if request.method != "POST":
            return failure_response(405, METHOD_NOT_ALLOWED_MESSAGE)

        state = request.app.state
        try:
            return await _analyze_upload(request, state.settings, state.analysis_client)
        except InputRejected as err:
            return failure_response(err.status_code, err.message)
        except AnalysisError as err:
            logger.error("MCQ analysis failed (%s): %s", type(err).__name__, err)
            return _analysis_failure(state.settings, err)
        except Exception as err:
            logger.exception("MCQ analysis failed unexpectedly")
            return _analysis_failure(state.settings, err)

    return app
