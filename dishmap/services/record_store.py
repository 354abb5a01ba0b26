"""업로드 레코드 저장소.

레코드는 추가만 가능하며 순회 순서는 항상 삽입 순서입니다.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from dishmap.core.errors import StoreUnavailable
from dishmap.core.logger import get_logger
from dishmap.schemas.upload import UploadRecord

logger = get_logger(__name__)

_RECORD_LIST = TypeAdapter(list[UploadRecord])


class RecordStore(ABC):
    """업로드 레코드 저장소 인터페이스."""

    @abstractmethod
    def append(self, record: UploadRecord) -> str:
        """레코드를 추가하고 ID를 반환합니다. 실패 시 `StoreUnavailable`."""
        raise NotImplementedError

    @abstractmethod
    def all(self) -> list[UploadRecord]:
        """마지막으로 완료된 쓰기 기준의 전체 레코드 스냅샷을 반환합니다."""
        raise NotImplementedError

    def find_by_place(self, place_id: str) -> list[UploadRecord]:
        """특정 장소의 레코드만 삽입 순서대로 반환합니다."""
        return [record for record in self.all() if record.place_id == place_id]

    def all_or_empty(self) -> list[UploadRecord]:
        """읽기 실패를 빈 목록으로 낮춰 반환합니다. 집계 경로처럼 실패하면 안 되는 읽기에 사용합니다."""
        try:
            return self.all()
        except StoreUnavailable as exc:
            logger.error("Record store read failed, treating as empty: %s", exc)
            return []


class InMemoryRecordStore(RecordStore):
    """프로세스 메모리에 레코드를 보관하는 저장소."""

    def __init__(self, records: list[UploadRecord] | None = None) -> None:
        self._records: list[UploadRecord] = list(records or [])
        self._lock = threading.Lock()

    def append(self, record: UploadRecord) -> str:
        with self._lock:
            self._records = [*self._records, record]
        return record.id

    def all(self) -> list[UploadRecord]:
        return list(self._records)


class JsonFileRecordStore(RecordStore):
    """JSON 배열 파일 하나에 레코드를 보관하는 저장소.

    쓰기는 락으로 직렬화되고 임시 파일에 기록한 뒤 `os.replace`로 교체하므로,
    읽는 쪽은 언제나 완전한 파일만 보게 됩니다. 단일 프로세스 기준의 배타성만 보장합니다.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            self._write([])

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: UploadRecord) -> str:
        with self._lock:
            records = self._read()
            records.append(record)
            self._write(records)
        logger.info("Upload record stored: id=%s place_id=%s total=%d", record.id, record.place_id, len(records))
        return record.id

    def all(self) -> list[UploadRecord]:
        return self._read()

    def _read(self) -> list[UploadRecord]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StoreUnavailable(details=str(exc)) from exc

        if not raw.strip():
            return []

        try:
            return _RECORD_LIST.validate_python(json.loads(raw))
        except (ValueError, PydanticValidationError) as exc:
            logger.error("Record store file is corrupt: path=%s error=%s", self._path, exc)
            raise StoreUnavailable(details=f"corrupt metadata file: {self._path.name}") from exc

    def _write(self, records: list[UploadRecord]) -> None:
        payload = json.dumps(
            _RECORD_LIST.dump_python(records, mode="json"),
            indent=2,
            ensure_ascii=False,
        )
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self._path)
        except OSError as exc:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise StoreUnavailable(details=str(exc)) from exc
