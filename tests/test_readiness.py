"""Readiness 체크 유틸 테스트."""

from __future__ import annotations

import asyncio

from dishmap.core.config import get_settings
from dishmap.core.readiness import collect_readiness_status


def _set_required_env(monkeypatch, **overrides: str) -> None:
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    for key, value in overrides.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()


async def _fake_tcp(*args, **kwargs):
    return {"status": "ok", "ok": True, "required": True, "detail": "mock-ok"}


def test_collect_readiness_status_not_ready_when_upload_dir_missing(monkeypatch, tmp_path) -> None:
    _set_required_env(monkeypatch, UPLOAD_DIR=str(tmp_path / "missing"))
    monkeypatch.setattr("dishmap.core.readiness._check_tcp_connectivity", _fake_tcp)

    result = asyncio.run(collect_readiness_status())

    assert result["status"] == "not_ready"
    assert result["checks"]["upload_dir"]["status"] == "fail"


def test_collect_readiness_status_not_ready_when_metadata_corrupt(monkeypatch, tmp_path) -> None:
    (tmp_path / "metadata.json").write_text("not-json", encoding="utf-8")
    _set_required_env(monkeypatch, UPLOAD_DIR=str(tmp_path))
    monkeypatch.setattr("dishmap.core.readiness._check_tcp_connectivity", _fake_tcp)

    result = asyncio.run(collect_readiness_status())

    assert result["status"] == "not_ready"
    assert result["checks"]["record_store"]["status"] == "fail"
    assert result["checks"]["upload_dir"]["status"] == "ok"


def test_collect_readiness_status_ready_with_empty_store(monkeypatch, tmp_path) -> None:
    (tmp_path / "metadata.json").write_text("[]", encoding="utf-8")
    _set_required_env(monkeypatch, UPLOAD_DIR=str(tmp_path))
    monkeypatch.setattr("dishmap.core.readiness._check_tcp_connectivity", _fake_tcp)

    result = asyncio.run(collect_readiness_status())

    assert result["status"] == "ready"
    assert result["checks"]["google_places"]["detail"] == "mock-ok"
