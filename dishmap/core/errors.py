"""서비스 전역 예외 계층.

HTTP 계층은 `code`와 `message`만 보고 응답을 만들며, 서비스 계층은 FastAPI를 알지 못합니다.
"""

from __future__ import annotations


class DishmapError(Exception):
    """모든 도메인 예외의 기반 클래스."""

    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None, *, details: str | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(DishmapError):
    """요청 입력이 누락되었거나 형식이 잘못된 경우 (HTTP 400)."""

    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class MissingTerms(ValidationError):
    code = "MISSING_TERMS"
    default_message = "Missing terms parameter"


class MissingPlaceId(ValidationError):
    code = "MISSING_PLACE_ID"
    default_message = "Missing place_id"


class MissingPhoto(ValidationError):
    code = "MISSING_PHOTO"
    default_message = "Missing photo file"


class MissingPhotoReference(ValidationError):
    code = "MISSING_PHOTO_REFERENCE"
    default_message = "Missing photoreference"


class InvalidFileType(ValidationError):
    code = "INVALID_FILE_TYPE"
    default_message = "Only image files are allowed"


class FileTooLarge(ValidationError):
    code = "FILE_TOO_LARGE"
    default_message = "File too large"


class UpstreamError(DishmapError):
    """Places 제공자 호출이 실패했거나 오류 상태를 반환한 경우."""

    code = "UPSTREAM_ERROR"
    default_message = "Upstream provider request failed"


class MediaProcessingError(DishmapError):
    """이미지 변형본 생성 실패. 업로드 자체를 실패시키지 않습니다."""

    code = "MEDIA_PROCESSING_ERROR"
    default_message = "Image variant generation failed"


class StoreUnavailable(DishmapError):
    """업로드 메타데이터 저장소를 읽거나 쓸 수 없는 경우."""

    code = "STORE_UNAVAILABLE"
    default_message = "Upload metadata store is unavailable"


class RequestFailed(DishmapError):
    """라우트 단위 실패 라벨(예: "Search failed")을 붙여 500으로 응답할 때 사용합니다."""

    code = "REQUEST_FAILED"
    default_message = "Request failed"

    def __init__(self, message: str, *, code: str | None = None, details: str | None = None) -> None:
        super().__init__(message, details=details)
        if code:
            self.code = code
