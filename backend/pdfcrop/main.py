import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles

load_dotenv()

from .core.config import settings, validate_settings, ConfigValidationError
from .crop_metrics import get_crop_metrics
from .crop_params import MSG_NO_FILE, parse_crop_request
from .errors import CropError, InvalidCropRequest, UploadTooLarge
from .metrics_middleware import MetricsMiddleware
from .pdf_crop import crop_pdf_page
from .upload_store import stored_upload

# Logging setup
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

CROPPED_FILENAME = "cropped.pdf"

app = FastAPI(
    title="PDF Crop API",
    description="Crop a rectangle out of one PDF page into a new single-page PDF",
    version="1.0.0"
)


@app.on_event("startup")
async def startup_event():
    try:
        validate_settings(settings)
        logger.info("Config validation passed")
    except ConfigValidationError as e:
        logger.critical(f"FATAL: Config validation failed:\n{e}")
        raise RuntimeError(str(e))

    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    logger.info(
        f"PDF crop server listening on port {settings.port} "
        f"(env={settings.env}, upload_dir={settings.upload_dir}, "
        f"max_upload_bytes={settings.max_upload_bytes})"
    )


# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=not settings.is_production,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# ── Metrics Middleware ────────────────────────────────────────────────────────
app.add_middleware(MetricsMiddleware)


@app.exception_handler(CropError)
async def crop_error_handler(request: Request, exc: CropError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# ── Prometheus Metrics Endpoint ───────────────────────────────────────────────
@app.get("/metrics", include_in_schema=False)
async def prometheus_metrics():
    """
    GET /metrics: Prometheus text exposition format.
    Instance-level registry only, never the global default registry.
    """
    return Response(
        content=get_crop_metrics().generate_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/crop")
async def crop(
    file: Union[UploadFile, str, None] = File(None),
    page: Optional[str] = Form(None),
    x: Optional[str] = Form(None),
    y: Optional[str] = Form(None),
    w: Optional[str] = Form(None),
    h: Optional[str] = Form(None),
):
    """
    Crop one page of an uploaded PDF.

    Form fields:
        file: PDF document
        page: 0-based page index (default 0)
        x, y, w, h: crop rectangle, origin at the page's top-left corner (default 0)

    Returns the cropped page as an attachment named cropped.pdf.
    """
    metrics = get_crop_metrics()

    # A plain text field named "file" carries no upload.
    if file is None or isinstance(file, str):
        metrics.inc_crop("invalid_request")
        raise InvalidCropRequest(MSG_NO_FILE)

    try:
        async with stored_upload(
            file,
            settings.upload_dir,
            max_bytes=settings.max_upload_bytes,
            chunk_bytes=settings.upload_chunk_bytes,
        ) as upload:
            metrics.observe_upload_bytes(upload.size)
            crop_request = parse_crop_request(page, x, y, w, h)
            result = await asyncio.to_thread(crop_pdf_page, upload.path, crop_request)
    except UploadTooLarge:
        metrics.inc_crop("too_large")
        raise
    except CropError as e:
        logger.info(f"[crop] Rejected {file.filename!r}: {e.message}")
        metrics.inc_crop("invalid_request")
        raise
    except Exception as e:
        logger.exception(f"[crop] Failed to crop {file.filename!r}")
        metrics.inc_crop("error")
        return JSONResponse(
            status_code=500,
            content={"error": "Server error", "details": str(e)},
        )

    metrics.inc_crop("success")
    metrics.observe_crop_duration(result.duration_seconds)

    return Response(
        content=result.pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{CROPPED_FILENAME}"',
        },
    )


# ── Static front-end (optional) ───────────────────────────────────────────────
# Mounted last so it never shadows the API routes above.
if Path(settings.static_dir).is_dir():
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
else:
    logger.info(f"Static directory {settings.static_dir} not found, front-end disabled")
