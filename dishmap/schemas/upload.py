"""사용자 업로드 사진 레코드 모델."""

from datetime import datetime

from pydantic import BaseModel, Field


class UploadRecord(BaseModel):
    """메타데이터 파일에 저장되는 업로드 레코드.

    생성 이후에는 변경되지 않습니다. `thumb_url`/`preview_url`은 변형본 생성 실패 시 `None`입니다.
    """

    id: str = Field(..., description="레코드 고유 ID")
    filename: str = Field(..., description="원본 파일명")
    url: str = Field(..., description="원본 공개 경로")
    thumb_url: str | None = Field(default=None, description="썸네일(400px) 공개 경로")
    preview_url: str | None = Field(default=None, description="미리보기(160px) 공개 경로")
    place_id: str = Field(..., min_length=1, description="사진이 속한 장소 ID")
    dish: str = Field(default="", description="요리 이름")
    uploader_name: str = Field(default="", description="업로더 이름")
    created_at: datetime = Field(..., description="생성 시각 (UTC)")


class UserPhoto(BaseModel):
    """장소 상세 응답에 포함되는 사용자 사진."""

    id: str
    url: str
    thumb_url: str | None = None
    preview_url: str | None = None
    dish: str = ""
    uploader_name: str = ""
    created_at: datetime

    @classmethod
    def from_record(cls, record: UploadRecord) -> "UserPhoto":
        return cls(
            id=record.id,
            url=record.url,
            thumb_url=record.thumb_url,
            preview_url=record.preview_url,
            dish=record.dish,
            uploader_name=record.uploader_name,
            created_at=record.created_at,
        )


class UploadResponse(BaseModel):
    """업로드 API 응답 모델."""

    message: str = Field(default="Uploaded", description="처리 결과 메시지")
    record: UploadRecord = Field(..., description="저장된 업로드 레코드")
