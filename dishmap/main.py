"""FastAPI 애플리케이션 진입점."""

from __future__ import annotations

import asyncio

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as SettingsValidationError
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from dishmap.api import photo, place, search, upload
from dishmap.api.dependencies import get_record_store
from dishmap.core.config import get_settings
from dishmap.core.errors import DishmapError, RequestFailed, ValidationError
from dishmap.core.logger import get_logger
from dishmap.core.logging_config import build_logging_config, configure_logging
from dishmap.core.readiness import collect_readiness_status
from dishmap.core.timeout_policy import get_timeout_policy

configure_logging()
logger = get_logger(__name__)

try:
    settings = get_settings()
except SettingsValidationError:
    logger.critical("Missing GOOGLE_API_KEY in environment; refusing to start.")
    raise

timeout_policy = get_timeout_policy(settings)

INTERNAL_ERROR_DETAILS = "Internal server error"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _resolve_docs_mode(mode: str) -> str:
    normalized = (mode or "").strip().lower()
    if normalized in {"disabled", "public"}:
        return normalized
    logger.warning("유효하지 않은 DOCS_MODE 값입니다. disabled로 대체합니다: %s", mode)
    return "disabled"


def _configure_proxy_headers(app_: FastAPI) -> None:
    if not settings.PROXY_HEADERS_ENABLED:
        return

    trusted_hosts = _split_csv(settings.PROXY_TRUSTED_HOSTS) or ["127.0.0.1"]
    app_.add_middleware(ProxyHeadersMiddleware, trusted_hosts=trusted_hosts)


def _configure_trusted_hosts(app_: FastAPI) -> None:
    trusted_hosts = _split_csv(settings.TRUSTED_HOSTS)
    if not trusted_hosts:
        return

    app_.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)


def _configure_cors(app_: FastAPI) -> None:
    origins = _split_csv(settings.CORS_ALLOW_ORIGINS)
    if not origins:
        return

    allow_methods = _split_csv(settings.CORS_ALLOW_METHODS) or ["GET"]
    allow_headers = _split_csv(settings.CORS_ALLOW_HEADERS) or ["Content-Type"]
    allow_credentials = settings.CORS_ALLOW_CREDENTIALS

    if "*" in origins and allow_credentials:
        logger.warning(
            "CORS_ALLOW_ORIGINS에 '*'와 CORS_ALLOW_CREDENTIALS=true가 함께 설정되어 "
            "allow_credentials를 false로 강제합니다."
        )
        allow_credentials = False

    app_.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=allow_methods,
        allow_headers=allow_headers,
    )


def _mount_uploads(app_: FastAPI) -> None:
    """업로드 디렉터리와 메타데이터 파일을 준비하고 정적 경로로 노출합니다."""
    upload_path = settings.upload_path
    upload_path.mkdir(parents=True, exist_ok=True)
    get_record_store()
    app_.mount(settings.UPLOADS_URL_PREFIX, StaticFiles(directory=upload_path), name="uploads")
    logger.info("Uploads served at %s (folder: %s)", settings.UPLOADS_URL_PREFIX, upload_path)


docs_mode = _resolve_docs_mode(settings.DOCS_MODE)

app = FastAPI(
    title="Dishmap",
    docs_url="/docs" if docs_mode == "public" else None,
    redoc_url="/redoc" if docs_mode == "public" else None,
    openapi_url="/openapi.json" if docs_mode == "public" else None,
)

_configure_proxy_headers(app)
_configure_trusted_hosts(app)
_configure_cors(app)

app.include_router(search.router)
app.include_router(place.router)
app.include_router(photo.router)
app.include_router(upload.router)
_mount_uploads(app)


@app.middleware("http")
async def enforce_request_timeout(request: Request, call_next) -> Response:
    """요청 전체 처리 시간을 제한합니다."""
    try:
        return await asyncio.wait_for(call_next(request), timeout=timeout_policy.request_timeout_seconds)
    except asyncio.TimeoutError:
        logger.error("Request timed out: %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=504,
            content={"error": "요청 처리 시간이 초과되었습니다.", "code": "REQUEST_TIMEOUT"},
        )


@app.middleware("http")
async def add_security_headers(request: Request, call_next) -> Response:
    """기본 보안 헤더를 응답에 추가합니다."""
    response = await call_next(request)
    if not settings.SECURITY_HEADERS_ENABLED:
        return response

    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    if settings.ENABLE_HSTS and request.url.scheme == "https":
        response.headers.setdefault("Strict-Transport-Security", f"max-age={settings.HSTS_MAX_AGE_SECONDS}")
    return response


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """입력 검증 실패를 400으로 응답합니다."""
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=400, content={"error": exc.message, "code": exc.code})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """쿼리/폼 파라미터 형식 오류를 400으로 응답합니다."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "code": "VALIDATION_ERROR", "details": str(exc.errors())},
    )


@app.exception_handler(DishmapError)
async def request_failed_handler(request: Request, exc: DishmapError) -> JSONResponse:
    """업스트림/저장소 실패 등 요청 단위 실패를 500으로 응답합니다."""
    if not isinstance(exc, RequestFailed):
        logger.error("Unlabelled failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"error": exc.message, "code": exc.code, "details": exc.details or INTERNAL_ERROR_DETAILS},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """예상하지 못한 예외를 표준 형식으로 처리합니다."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    details = str(exc) if settings.EXPOSE_INTERNAL_ERRORS else INTERNAL_ERROR_DETAILS
    return JSONResponse(status_code=500, content={"error": "Request failed", "details": details})


@app.get("/")
def health_check() -> dict:
    """헬스 체크 엔드포인트."""
    return {"status": "ok", "message": "Dishmap server is running"}


@app.get("/ready")
async def readiness_check() -> JSONResponse:
    """저장소와 외부 API 준비 상태를 반환합니다."""
    report = await collect_readiness_status()
    status_code = 200 if report["status"] == "ready" else 503
    return JSONResponse(status_code=status_code, content=report)


def run() -> None:
    """`dishmap` 콘솔 스크립트 진입점."""
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=build_logging_config())
