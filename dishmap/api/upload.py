"""사용자 사진 업로드 API."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from dishmap.api.dependencies import get_ingestion_service
from dishmap.core.config import get_settings
from dishmap.core.errors import DishmapError, MissingPhoto, RequestFailed, StoreUnavailable
from dishmap.core.logger import get_logger
from dishmap.schemas.upload import UploadResponse
from dishmap.services.ingestion_service import IngestionService

router = APIRouter(prefix="/api", tags=["upload"])
logger = get_logger(__name__)


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    photo: UploadFile | None = File(default=None),  # noqa: B008
    place_id: str | None = Form(default=None),  # noqa: B008
    dish: str | None = Form(default=None),  # noqa: B008
    uploader_name: str | None = Form(default=None),  # noqa: B008
    ingestion: IngestionService = Depends(get_ingestion_service),  # noqa: B008
) -> UploadResponse:
    """사진을 저장하고 썸네일/미리보기를 만든 뒤 메타데이터 레코드를 반환합니다."""
    if photo is None or not photo.filename:
        raise MissingPhoto()

    try:
        record = await ingestion.ingest(
            photo.file,
            filename=photo.filename,
            mime_type=photo.content_type,
            place_id=place_id,
            dish=dish,
            uploader_name=uploader_name,
        )
    except StoreUnavailable as exc:
        raise RequestFailed("Upload failed", code=exc.code, details=exc.details or exc.message) from exc
    except DishmapError:
        raise
    except Exception as exc:
        logger.exception("Upload failed: place_id=%s", place_id)
        details = str(exc) if get_settings().EXPOSE_INTERNAL_ERRORS else None
        raise RequestFailed("Upload failed", details=details) from exc
    finally:
        await photo.close()

    return UploadResponse(message="Uploaded", record=record)
