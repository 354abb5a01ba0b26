"""사용자 사진 업로드 수집 서비스.

검증 순서는 (1) MIME 타입, (2) 파일 크기, (3) place_id 입니다. (1)은 저장 전에 실패하고,
(2)는 스트리밍 저장 중 한도를 넘으면 부분 파일을 지우고 실패하며, (3)은 이미 저장된 원본을 지운 뒤 실패합니다.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

from dishmap.core.config import Settings, get_settings
from dishmap.core.errors import (
    FileTooLarge,
    InvalidFileType,
    MediaProcessingError,
    MissingPlaceId,
    StoreUnavailable,
)
from dishmap.core.logger import get_logger
from dishmap.schemas.upload import UploadRecord
from dishmap.services.media_variants import MediaVariants, derive_variants
from dishmap.services.record_store import RecordStore

logger = get_logger(__name__)

DEFAULT_EXTENSION = ".jpg"
_CHUNK_SIZE = 1024 * 1024


def _resolve_extension(filename: str | None) -> str:
    suffix = Path(filename or "").suffix
    if not suffix or not suffix[1:].isalnum():
        return DEFAULT_EXTENSION
    return suffix


def _copy_with_limit(source: BinaryIO, destination: Path, max_bytes: int) -> int:
    """스트림을 파일로 복사합니다. 한도를 넘으면 부분 파일을 지우고 `FileTooLarge`를 발생시킵니다."""
    written = 0
    try:
        with destination.open("wb") as target:
            while chunk := source.read(_CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise FileTooLarge(details=f"limit is {max_bytes} bytes")
                target.write(chunk)
    except BaseException:
        destination.unlink(missing_ok=True)
        raise
    return written


class IngestionService:
    """업로드를 검증하고 원본/변형본/레코드를 저장합니다."""

    def __init__(
        self,
        record_store: RecordStore,
        upload_dir: str | Path,
        *,
        public_prefix: str = "/uploads",
        max_upload_bytes: int = 12 * 1024 * 1024,
    ) -> None:
        self._record_store = record_store
        self._upload_dir = Path(upload_dir)
        self._public_prefix = "/" + public_prefix.strip("/")
        self._max_upload_bytes = max_upload_bytes
        self._upload_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_settings(cls, record_store: RecordStore, settings: Settings | None = None) -> IngestionService:
        """애플리케이션 설정으로 서비스 인스턴스를 생성합니다."""
        resolved = settings or get_settings()
        return cls(
            record_store,
            resolved.upload_path,
            public_prefix=resolved.UPLOADS_URL_PREFIX,
            max_upload_bytes=resolved.MAX_UPLOAD_BYTES,
        )

    def _public_url(self, filename: str | None) -> str | None:
        if not filename:
            return None
        return f"{self._public_prefix}/{filename}"

    async def ingest(
        self,
        file: BinaryIO,
        *,
        filename: str | None,
        mime_type: str | None,
        place_id: str | None,
        dish: str | None = None,
        uploader_name: str | None = None,
    ) -> UploadRecord:
        """업로드 한 건을 처리하고 저장된 레코드를 반환합니다.

        Raises:
            InvalidFileType: MIME 타입이 `image/`로 시작하지 않는 경우 (파일 미저장).
            FileTooLarge: 크기 한도 초과 (부분 파일 삭제).
            MissingPlaceId: place_id 누락 (저장된 원본 삭제).
            StoreUnavailable: 메타데이터 기록 실패 (저장된 원본과 변형본 삭제).
        """
        if not (mime_type or "").startswith("image/"):
            raise InvalidFileType(details=f"received content type: {mime_type or 'unknown'}")

        stored_name = f"{uuid.uuid4()}{_resolve_extension(filename)}"
        original_path = self._upload_dir / stored_name
        size = await asyncio.to_thread(_copy_with_limit, file, original_path, self._max_upload_bytes)

        if not (place_id or "").strip():
            self._discard(original_path)
            raise MissingPlaceId()

        variants = await self._derive_variants(original_path)

        record = UploadRecord(
            id=str(uuid.uuid4()),
            filename=stored_name,
            url=self._public_url(stored_name),
            thumb_url=self._public_url(variants.thumb_filename if variants else None),
            preview_url=self._public_url(variants.preview_filename if variants else None),
            place_id=place_id,
            dish=dish or "",
            uploader_name=uploader_name or "",
            created_at=datetime.now(timezone.utc),
        )
        try:
            await asyncio.to_thread(self._record_store.append, record)
        except StoreUnavailable:
            self._discard(original_path)
            if variants is not None:
                self._discard(self._upload_dir / variants.thumb_filename)
                self._discard(self._upload_dir / variants.preview_filename)
            raise

        logger.info(
            "Upload ingested: id=%s place_id=%s bytes=%d variants=%s",
            record.id,
            record.place_id,
            size,
            variants is not None,
        )
        return record

    async def _derive_variants(self, original_path: Path) -> MediaVariants | None:
        try:
            return await asyncio.to_thread(derive_variants, original_path)
        except MediaProcessingError as exc:
            logger.warning("Thumbnail generation failed for %s: %s", original_path.name, exc.details or exc)
            return None

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to remove orphaned upload %s: %s", path.name, exc)
