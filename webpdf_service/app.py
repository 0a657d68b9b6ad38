"""
Web PDF Service - FastAPI application.

Renders web pages to PDF with a shared Playwright/Chromium instance and
compresses PDF uploads with Ghostscript.
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from . import __version__
from .browser import BrowserManager
from .compression import DEFAULT_JPEG_QUALITY, compress_pdf_buffer
from .config import get_settings, validate_config_on_startup
from .errors import PayloadTooLargeError, PdfServiceError, RenderError, ValidationError
from .generator import generate_pdf
from .logger import clock, generate_request_id, init_telemetry, track_trace
from .models import GenerateReportRequest

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"

app = FastAPI(
    title="Web PDF Service",
    version=__version__,
    description="Web page to PDF conversion and PDF compression"
)


# ============================================================================
# Lifecycle - one browser for the lifetime of the process
# ============================================================================

@app.on_event("startup")
async def start_browser() -> None:
    """
    Configure logging and launch the shared browser.

    Uvicorn does not accept connections until this completes, so the
    browser is ready before the first request is served.
    """
    settings = get_settings()
    init_telemetry(settings.applicationinsights_connection_string, settings.log_level)
    validate_config_on_startup()

    browser_manager = BrowserManager(
        headless=settings.playwright_headless,
        max_concurrent_renders=settings.max_concurrent_renders,
    )
    await browser_manager.start()
    app.state.browser_manager = browser_manager


@app.on_event("shutdown")
async def stop_browser() -> None:
    browser_manager: Optional[BrowserManager] = getattr(app.state, "browser_manager", None)
    if browser_manager is not None:
        await browser_manager.stop()
        app.state.browser_manager = None


def get_browser_manager(request: Request) -> BrowserManager:
    """Dependency returning the shared browser manager."""
    browser_manager = getattr(request.app.state, "browser_manager", None)
    if browser_manager is None:
        raise RenderError("Browser manager has not been started")
    if not browser_manager.is_ready:
        logger.error("Chromium is not connected, cannot render")
        raise RenderError("Browser is not connected")
    return browser_manager


# ============================================================================
# Middleware & Error Handlers
# ============================================================================

@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    """Tag the request with a correlation id and trace its total duration."""
    start = clock()
    request.state.request_id = generate_request_id()
    request.state.start = start

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        if int(content_length) > get_settings().max_body_bytes:
            track_trace(f"Rejected body of {content_length} bytes", start, request.state.request_id)
            return JSONResponse(status_code=413, content={"detail": "Request body too large"})

    response = await call_next(request)
    track_trace(
        f"{request.method} {request.url.path} -> {response.status_code}",
        start,
        request.state.request_id,
    )
    return response


@app.exception_handler(PdfServiceError)
async def handle_service_error(request: Request, exc: PdfServiceError) -> JSONResponse:
    """Log failures in full; return only a generic message to the caller."""
    request_id = getattr(request.state, "request_id", "")
    if isinstance(exc, ValidationError):
        logger.warning(f"[@{request_id}] Rejected request: {exc}")
    else:
        logger.error(f"[@{request_id}] {type(exc).__name__}: {exc}", exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_message})


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    logger.warning(f"[@{request_id}] Invalid request: {exc.errors()}")
    return JSONResponse(status_code=400, content={"detail": "Invalid request"})


# ============================================================================
# Health Endpoints
# ============================================================================

@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "OK"


@app.get("/evwebpdfhealth", response_class=PlainTextResponse)
async def health_check() -> str:
    return "OK"


# ============================================================================
# PDF Generation Endpoints
# ============================================================================

@app.get("/generateReport/{url:path}")
async def generate_report_from_path(
    url: str,
    request: Request,
    browser_manager: BrowserManager = Depends(get_browser_manager),
) -> Response:
    """
    Render the page at `url` (a URL-encoded path segment) to PDF.

    Returns:
        PDF bytes with Content-Type application/pdf; 500 if rendering fails
    """
    if not url.strip():
        raise ValidationError("Missing url")

    pdf_bytes = await generate_pdf(
        browser_manager,
        url,
        request.state.request_id,
        timeout=get_settings().render_timeout_ms,
    )
    return Response(content=pdf_bytes, media_type=PDF_MEDIA_TYPE)


@app.post("/generateReport")
async def generate_report(
    body: GenerateReportRequest,
    request: Request,
    browser_manager: BrowserManager = Depends(get_browser_manager),
) -> Response:
    """
    Render a page to PDF with optional API mocking, cookies and compression.

    Returns:
        PDF bytes with Content-Type application/pdf

    Raises:
        ValidationError: `url` is missing (400)
        RenderError: Rendering or compression failed (500)
    """
    request_id = request.state.request_id
    cookie_count = len(body.cookies or [])
    track_trace(
        f"Request body: {body.model_dump_json(exclude={'cookies'}, exclude_none=True)} "
        f"cookies={cookie_count}",
        request.state.start,
        request_id,
    )

    if not body.url or not body.url.strip():
        raise ValidationError('Missing "url" in request body')

    pdf_bytes = await generate_pdf(
        browser_manager,
        body.url.strip(),
        request_id,
        timeout=body.timeout or get_settings().render_timeout_ms,
        requests=body.intercept,
        cookies=body.cookies,
        wait_for_selector=body.waitForSelector,
        pdf_options=body.compression_settings(),
    )
    return Response(content=pdf_bytes, media_type=PDF_MEDIA_TYPE)


# ============================================================================
# Compression Endpoint
# ============================================================================

@app.post("/compressPdf/{dpi}")
async def compress_pdf(
    dpi: float,
    request: Request,
    quality: float = Query(DEFAULT_JPEG_QUALITY, description="JPEG quality, clamped to 1-100"),
) -> Response:
    """
    Compress an uploaded PDF.

    Example:
        curl -X POST -H "Content-Type: application/pdf" --data-binary "@in.pdf" \\
            http://localhost:3000/compressPdf/150 --output out.pdf
    """
    start = request.state.start
    request_id = request.state.request_id

    pdf_buffer = await request.body()
    if len(pdf_buffer) > get_settings().max_body_bytes:
        raise PayloadTooLargeError("Request body too large")
    if not pdf_buffer:
        raise ValidationError("No file uploaded or file is empty.")

    track_trace(f"Received PDF file size {len(pdf_buffer) / (1024 * 1024):.2f} MB", start, request_id)
    compressed = await compress_pdf_buffer(pdf_buffer, dpi, quality)
    track_trace(f"Compressed PDF size {len(compressed) / (1024 * 1024):.2f} MB", start, request_id)

    return Response(content=compressed, media_type=PDF_MEDIA_TYPE)
