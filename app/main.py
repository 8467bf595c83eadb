"""FastAPI application entrypoint. No business logic; only wiring, middleware and error envelopes."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.services.result_store import ResultStoreError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.has_explicit_aws_credentials():
        source = "explicit access keys from settings"
    else:
        source = "boto3 default credential chain"
    logger.info(
        "Cloud Posture API starting",
        extra={"environment": settings.APP_ENV, "aws_region": settings.AWS_REGION},
    )
    logger.info("AWS credentials: %s", source)
    yield


app = FastAPI(
    title="Cloud Posture API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={"duration_ms": round((time.perf_counter() - started) * 1000, 1)},
    )
    return response


def _envelope(status_code: int, message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": data},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()
    ]
    return _envelope(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid request", errors)


@app.exception_handler(ResultStoreError)
async def result_store_exception_handler(request: Request, exc: ResultStoreError) -> JSONResponse:
    logger.error(
        "Result store unavailable",
        extra={"path": request.url.path, "error": str(exc.cause or exc.message)[:500]},
    )
    return _envelope(status.HTTP_503_SERVICE_UNAVAILABLE, "Scan results are temporarily unavailable")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, Any]:
    """Root route; lists the available endpoints for discovery."""
    prefix = settings.API_V1_PREFIX
    return {
        "message": "Cloud Posture API",
        "endpoints": {
            "health": f"GET {prefix}/health",
            "scan": f"POST {prefix}/scans",
            "history": f"GET {prefix}/scans",
            "latest": f"GET {prefix}/scans/latest",
            "summary": f"GET {prefix}/scans/latest/summary",
            "scanById": f"GET {prefix}/scans/{{scan_id}}",
            "rules": f"GET {prefix}/rules",
        },
    }
