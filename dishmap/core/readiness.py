"""애플리케이션 준비성(readiness) 체크 유틸."""

from __future__ import annotations

import asyncio
import os
import socket

from dishmap.core.config import Settings, get_settings
from dishmap.core.errors import StoreUnavailable
from dishmap.core.timeout_policy import TimeoutPolicy, get_timeout_policy
from dishmap.services.record_store import JsonFileRecordStore

ReadinessCheck = dict[str, str | bool]

GOOGLE_PLACES_HOST = "maps.googleapis.com"


def _ok(detail: str, *, required: bool = True) -> ReadinessCheck:
    return {"status": "ok", "ok": True, "required": required, "detail": detail}


def _fail(detail: str, *, required: bool = True) -> ReadinessCheck:
    return {"status": "fail", "ok": False, "required": required, "detail": detail}


async def _check_tcp_connectivity(host: str, port: int, timeout_seconds: int, label: str) -> ReadinessCheck:
    def _connect() -> None:
        with socket.create_connection((host, port), timeout=timeout_seconds):
            return None

    try:
        await asyncio.to_thread(_connect)
        return _ok(f"{label} 연결 가능 ({host}:{port})")
    except OSError as exc:
        return _fail(f"{label} 연결 실패 ({host}:{port}): {exc}")


async def _check_upload_dir(settings: Settings) -> ReadinessCheck:
    upload_path = settings.upload_path
    if not upload_path.is_dir():
        return _fail(f"업로드 디렉터리가 존재하지 않습니다: {upload_path}")
    if not os.access(upload_path, os.W_OK):
        return _fail(f"업로드 디렉터리에 쓸 수 없습니다: {upload_path}")
    return _ok("업로드 디렉터리 쓰기 가능")


async def _check_record_store(settings: Settings) -> ReadinessCheck:
    if not settings.metadata_path.is_file():
        return _fail(f"메타데이터 파일이 존재하지 않습니다: {settings.metadata_path}")

    def _read() -> int:
        return len(JsonFileRecordStore(settings.metadata_path).all())

    try:
        count = await asyncio.to_thread(_read)
        return _ok(f"메타데이터 파일 확인 완료 (records={count})")
    except StoreUnavailable as exc:
        return _fail(f"메타데이터 파일을 읽을 수 없습니다: {exc.details or exc.message}")


async def _check_google_places_readiness(timeout_policy: TimeoutPolicy) -> ReadinessCheck:
    return await _check_tcp_connectivity(
        host=GOOGLE_PLACES_HOST,
        port=443,
        timeout_seconds=timeout_policy.external_api_timeout_seconds,
        label="Google Places API",
    )


async def collect_readiness_status() -> dict[str, object]:
    """저장소/외부 API 의존성 준비 상태를 점검합니다."""
    settings = get_settings()
    timeout_policy = get_timeout_policy(settings)

    upload_check, store_check, google_places_check = await asyncio.gather(
        _check_upload_dir(settings),
        _check_record_store(settings),
        _check_google_places_readiness(timeout_policy),
    )

    checks: dict[str, ReadinessCheck] = {
        "upload_dir": upload_check,
        "record_store": store_check,
        "google_places": google_places_check,
    }
    required_checks_ok = all(bool(check["ok"]) for check in checks.values() if bool(check.get("required", True)))

    return {
        "status": "ready" if required_checks_ok else "not_ready",
        "checks": checks,
    }
