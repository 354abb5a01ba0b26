"""업로드 수집 서비스 테스트."""

from __future__ import annotations

import asyncio
import io

import pytest
from PIL import Image

import dishmap.services.ingestion_service as ingestion_module
from dishmap.core.errors import FileTooLarge, InvalidFileType, MediaProcessingError, MissingPlaceId
from dishmap.services.ingestion_service import IngestionService
from dishmap.services.record_store import JsonFileRecordStore


def _jpeg_bytes(size=(640, 480)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (10, 160, 90)).save(buffer, format="JPEG")
    return buffer.getvalue()


def _service(tmp_path, **kwargs) -> tuple[IngestionService, JsonFileRecordStore]:
    store = JsonFileRecordStore(tmp_path / "metadata.json")
    return IngestionService(store, tmp_path, **kwargs), store


def _media_files(tmp_path) -> list[str]:
    return sorted(path.name for path in tmp_path.iterdir() if path.name != "metadata.json")


def test_ingest_stores_original_variants_and_record(tmp_path) -> None:
    service, store = _service(tmp_path)

    record = asyncio.run(
        service.ingest(
            io.BytesIO(_jpeg_bytes()),
            filename="dinner.png",
            mime_type="image/jpeg",
            place_id="place-1",
            dish="Wonton Noodles",
            uploader_name="Ada",
        )
    )

    stem = record.filename.rsplit(".", 1)[0]
    assert record.filename.endswith(".png")
    assert record.url == f"/uploads/{record.filename}"
    assert record.thumb_url == f"/uploads/{stem}_thumb.jpg"
    assert record.preview_url == f"/uploads/{stem}_preview.jpg"
    assert record.dish == "Wonton Noodles"
    assert record.uploader_name == "Ada"
    assert _media_files(tmp_path) == sorted([record.filename, f"{stem}_thumb.jpg", f"{stem}_preview.jpg"])
    assert [stored.id for stored in store.find_by_place("place-1")] == [record.id]


def test_ingest_defaults_optional_fields_and_extension(tmp_path) -> None:
    service, store = _service(tmp_path)

    record = asyncio.run(
        service.ingest(io.BytesIO(_jpeg_bytes()), filename="blob", mime_type="image/jpeg", place_id="place-2")
    )

    assert record.filename.endswith(".jpg")
    assert record.dish == ""
    assert record.uploader_name == ""
    assert store.find_by_place("place-2") == [record]


def test_ingest_rejects_non_image_before_writing(tmp_path) -> None:
    service, store = _service(tmp_path)

    with pytest.raises(InvalidFileType):
        asyncio.run(
            service.ingest(io.BytesIO(b"hello"), filename="notes.txt", mime_type="text/plain", place_id="place-1")
        )

    assert _media_files(tmp_path) == []
    assert store.all() == []


def test_ingest_rejects_oversized_file_and_removes_partial_write(tmp_path) -> None:
    service, store = _service(tmp_path, max_upload_bytes=1024)

    with pytest.raises(FileTooLarge):
        asyncio.run(
            service.ingest(io.BytesIO(b"x" * 4096), filename="big.jpg", mime_type="image/jpeg", place_id="place-1")
        )

    assert _media_files(tmp_path) == []
    assert store.all() == []


def test_ingest_missing_place_id_removes_saved_original(tmp_path) -> None:
    service, store = _service(tmp_path)

    with pytest.raises(MissingPlaceId):
        asyncio.run(service.ingest(io.BytesIO(_jpeg_bytes()), filename="a.jpg", mime_type="image/jpeg", place_id=""))

    assert _media_files(tmp_path) == []
    assert store.all() == []


def test_ingest_keeps_record_when_variant_generation_fails(tmp_path, monkeypatch) -> None:
    def _fail(_path):
        raise MediaProcessingError(details="codec failure")

    monkeypatch.setattr(ingestion_module, "derive_variants", _fail)
    service, store = _service(tmp_path)

    record = asyncio.run(
        service.ingest(io.BytesIO(b"raw-bytes"), filename="a.heic", mime_type="image/heic", place_id="place-3")
    )

    assert record.thumb_url is None
    assert record.preview_url is None
    assert _media_files(tmp_path) == [record.filename]
    assert store.find_by_place("place-3") == [record]


def test_ingest_uses_custom_public_prefix(tmp_path) -> None:
    service, _ = _service(tmp_path, public_prefix="media/")

    record = asyncio.run(
        service.ingest(io.BytesIO(_jpeg_bytes()), filename="a.jpg", mime_type="image/jpeg", place_id="place-4")
    )

    assert record.url == f"/media/{record.filename}"
