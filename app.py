# User value: This file serves the page upload pipeline so documents reach the customer's SFTP server reliably.
# app.py
import os
import logging
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from utils.json_logging import configure_json_logging
from utils.metrics import incr, observe_ms

# Load env before importing modules that read os.getenv at import time.
load_dotenv(os.path.join(os.path.dirname(__file__), ".env"))


# User value: prepares stable, structured logs before the first request arrives.
def configure_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    configure_json_logging(service="sftp-page-transfer-api", level=level)


configure_logging()
logger = logging.getLogger("api.error")
from startup_env import validate_startup_env
from services.errors import PipelineError
from services.http_client import close_http_session
from utils.request_id import REQUEST_ID_HEADER, get_request_id, normalize_request_id, set_request_id

validate_startup_env()

from routes.upload import router as upload_router
from routes.health import router as health_router
from routes.contract import router as contract_router

app = FastAPI(title="SFTP Page Transfer API")


@app.on_event("shutdown")
def _close_shared_clients():
    close_http_session()


# User value: normalizes data so configured origins are applied consistently.
def _parse_csv_env(name: str) -> list[str]:
    raw = os.getenv(name, "")
    values = [x.strip() for x in raw.split(",") if x.strip()]
    seen = set()
    ordered = []
    for item in values:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = normalize_request_id(request.headers.get(REQUEST_ID_HEADER))
    set_request_id(request_id)
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = int(getattr(response, "status_code", 500))
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        duration_ms = (time.perf_counter() - started) * 1000.0
        method = request.method.upper()
        path = request.url.path
        status_class = f"{status_code // 100}xx"
        incr("api_http_requests_total", method=method, path=path, status_class=status_class, status_code=status_code)
        observe_ms("api_http_request_latency_ms", duration_ms, method=method, path=path, status_class=status_class)
        set_request_id(None)


def _extract_error_message(detail) -> str:
    if isinstance(detail, dict):
        return str(detail.get("error_message") or detail.get("message") or detail.get("detail") or detail)
    if isinstance(detail, list):
        return "; ".join(str(x) for x in detail)
    return str(detail)


def _to_error_code(status_code: int, detail) -> str:
    if isinstance(detail, dict) and detail.get("error_code"):
        return str(detail.get("error_code")).strip().upper()
    if status_code == 404:
        return "RESOURCE_NOT_FOUND"
    if status_code == 405:
        return "METHOD_NOT_ALLOWED"
    if status_code == 400:
        return "INVALID_REQUEST"
    return f"HTTP_{status_code}"


# User value: gives every failure the same body shape callers already parse for upload errors.
def _error_body(*, request: Request, status_code: int, detail, error_message: str | None = None) -> dict:
    request_id = get_request_id() or normalize_request_id(request.headers.get(REQUEST_ID_HEADER))
    return {
        "success": False,
        "error": error_message or _extract_error_message(detail),
        "errorCode": _to_error_code(status_code, detail),
        "details": _extract_error_message(detail),
        "path": request.url.path,
        "requestId": request_id,
    }


@app.exception_handler(PipelineError)
async def pipeline_exception_handler(request: Request, exc: PipelineError):
    body = exc.to_body()
    body["requestId"] = get_request_id() or normalize_request_id(request.headers.get(REQUEST_ID_HEADER))
    logger.warning(
        "request_failed_pipeline status=%s path=%s request_id=%s error_code=%s",
        exc.http_status,
        request.url.path,
        body["requestId"],
        exc.error_code,
    )
    return JSONResponse(status_code=exc.http_status, content=body)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    detail = exc.errors()
    body = _error_body(
        request=request,
        status_code=422,
        detail=[f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in detail],
        error_message="Request validation failed",
    )
    body["errorCode"] = "VALIDATION_ERROR"
    logger.warning(
        "request_failed_validation status=422 path=%s request_id=%s error_code=%s",
        request.url.path,
        body["requestId"],
        body["errorCode"],
    )
    return JSONResponse(status_code=422, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = _error_body(request=request, status_code=exc.status_code, detail=exc.detail)
    logger.warning(
        "request_failed status=%s path=%s request_id=%s error_code=%s error_message=%s",
        exc.status_code,
        request.url.path,
        body["requestId"],
        body["errorCode"],
        body["error"],
    )
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = get_request_id() or normalize_request_id(request.headers.get(REQUEST_ID_HEADER))
    logger.exception(
        "request_failed_unhandled path=%s request_id=%s error=%s: %s",
        request.url.path,
        request_id,
        exc.__class__.__name__,
        exc,
    )
    body = _error_body(
        request=request,
        status_code=500,
        detail="Unhandled server exception",
        error_message="SFTP upload failed",
    )
    body["errorCode"] = "INTERNAL_SERVER_ERROR"
    return JSONResponse(status_code=500, content=body)


CORS_ALLOW_ORIGINS = _parse_csv_env("CORS_ALLOW_ORIGINS")
logger.info("cors_configured allow_origins=%s", CORS_ALLOW_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)

app.include_router(health_router)
app.include_router(contract_router)
app.include_router(upload_router)
