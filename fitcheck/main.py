import os
import time
import hashlib
from typing import Dict
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import structlog

from .config import settings
from .routers.clothing import router as clothing_router
from .routers.fit import router as fit_router
from .routers.tryon import router as tryon_router
from .routers.images import router as images_router
from .routers.outfits import router as outfits_router
from .services.gemini import create_gemini_service


logger = structlog.get_logger("fitcheck")


app = FastAPI(title="FitCheck Virtual Try-On", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Token buckets per client ip: (tokens, last refill time)
_buckets: Dict[str, tuple[float, float]] = {}


class RateLimitExceeded(Exception):
    pass


def _request_id(request: Request) -> str:
    return hashlib.md5(f"{request.client.host if request.client else 'unknown'}{time.time()}".encode()).hexdigest()[:8]


def _rate_limit(ident: str, requests_per_min: int, burst: int) -> None:
    if requests_per_min <= 0:
        return
    refill_rate = requests_per_min / 60.0
    capacity = float(burst)
    now = time.time()
    tokens, last = _buckets.get(ident, (capacity, now))
    tokens = min(capacity, tokens + refill_rate * (now - last))
    if tokens < 1.0:
        raise RateLimitExceeded(ident)
    _buckets[ident] = (tokens - 1.0, now)


def _validate_config() -> None:
    strict = os.getenv("STRICT_CONFIG", "0") == "1"
    errors = []
    provider = (settings.vto_provider or "").lower()
    if not settings.gemini_api_key:
        if provider == "gemini":
            errors.append("GEMINI_API_KEY must be set when VTO_PROVIDER is 'gemini'")
        else:
            logger.warning("config_warning", warning="GEMINI_API_KEY not set; using mock try-on and disabling image editing")
    if provider not in ("", "mock", "gemini"):
        errors.append(f"VTO_PROVIDER must be 'gemini' or 'mock', got {settings.vto_provider!r}")
    if settings.scrape_timeout_seconds <= 0:
        errors.append("SCRAPE_TIMEOUT_SECONDS must be positive")
    if errors:
        if strict:
            raise RuntimeError("Configuration error: " + "; ".join(errors))
        else:
            for e in errors:
                logger.warning("config_warning", warning=e)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    request_id = _request_id(request)
    resp = None

    try:
        client_ip = request.client.host if request.client else "unknown"
        try:
            _rate_limit(client_ip, settings.rate_limit_per_min, settings.rate_limit_burst)
        except RateLimitExceeded:
            logger.warning("rate_limit_exceeded", client_ip=client_ip, request_id=request_id)
            resp = JSONResponse(status_code=429, content={"detail": "Too Many Requests"})
            return resp

        logger.info("request_started",
                    request_id=request_id,
                    path=str(request.url.path),
                    method=request.method,
                    client_ip=client_ip,
                    user_agent=request.headers.get("user-agent", "unknown"),
                    content_type=request.headers.get("content-type", "unknown"))

        resp = await call_next(request)
        return resp

    except Exception as e:
        duration_ms = int((time.time() - start) * 1000)
        logger.error("request_failed",
                     request_id=request_id,
                     path=str(request.url.path),
                     method=request.method,
                     error=str(e),
                     duration_ms=duration_ms,
                     exc_info=True)
        raise
    finally:
        duration_ms = int((time.time() - start) * 1000)
        status_code = getattr(resp, "status_code", 0) if resp else 0
        logger.info("request_completed",
                    request_id=request_id,
                    path=str(request.url.path),
                    method=request.method,
                    status=status_code,
                    duration_ms=duration_ms)


@app.exception_handler(Exception)
async def handle_exceptions(request: Request, exc: Exception):
    request_id = _request_id(request)

    logger.error("unhandled_exception",
                 request_id=request_id,
                 path=str(request.url.path),
                 method=request.method,
                 error=str(exc),
                 error_type=type(exc).__name__,
                 exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_code": "INTERNAL_ERROR",
            "request_id": request_id,
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        }
    )


@app.get("/v1/health")
async def health():
    return {"status": "ok"}


@app.get("/v1/debug/status")
async def debug_status():
    """Debug endpoint to check storage, Gemini wiring and rate limiting"""
    storage_status = "ok"
    try:
        os.makedirs(settings.storage_dir, exist_ok=True)
        test_file = os.path.join(settings.storage_dir, "test_write.tmp")
        with open(test_file, "w") as f:
            f.write("test")
        os.remove(test_file)
    except OSError as e:
        storage_status = f"error: {str(e)}"

    return {
        "status": "ok",
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "storage": {
            "directory": settings.storage_dir,
            "status": storage_status
        },
        "gemini": {
            "configured": getattr(app.state, "gemini", None) is not None,
            "image_model": settings.gemini_image_model,
            "text_model": settings.gemini_text_model,
        },
        "vto_provider": settings.vto_provider or ("gemini" if settings.gemini_api_key else "mock"),
        "rate_limiting": {
            "requests_per_min": settings.rate_limit_per_min,
            "burst_capacity": settings.rate_limit_burst,
            "active_buckets": len(_buckets)
        }
    }


# One Gemini client per process, handed to routes through dependencies
app.state.gemini = create_gemini_service(settings)

# Ensure storage dir
os.makedirs(settings.storage_dir, exist_ok=True)
app.mount("/files", StaticFiles(directory=settings.storage_dir), name="files")

# Routers under versioned prefix
app.include_router(clothing_router, prefix="/v1")
app.include_router(fit_router, prefix="/v1")
app.include_router(tryon_router, prefix="/v1")
app.include_router(images_router, prefix="/v1")
app.include_router(outfits_router, prefix="/v1")

# Validate configuration at import time (warnings by default; set STRICT_CONFIG=1 to enforce)
_validate_config()
