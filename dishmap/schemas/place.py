"""Google Places 응답을 표준화한 장소 모델과 API 응답 모델."""

from pydantic import BaseModel, Field

from dishmap.schemas.upload import UserPhoto


class PlaceLocation(BaseModel):
    """장소 위치 좌표."""

    lat: float = Field(..., description="위도")
    lng: float = Field(..., description="경도")


class ProviderReview(BaseModel):
    """Places 상세 조회에서 사용하는 리뷰 필드."""

    author_name: str | None = Field(default=None, description="작성자 이름")
    text: str | None = Field(default=None, description="리뷰 본문")
    rating: float | None = Field(default=None, description="평점")
    relative_time_description: str | None = Field(default=None, description="상대 작성 시각 (예: 2주 전)")
    author_url: str | None = Field(default=None, description="작성자 프로필 URL")


class PlaceCandidate(BaseModel):
    """텍스트 검색이 반환하는 후보 장소."""

    place_id: str = Field(..., description="Google Places 고유 ID")
    name: str | None = Field(default=None, description="장소 이름")
    formatted_address: str | None = Field(default=None, description="장소 주소")
    location: PlaceLocation | None = Field(default=None, description="장소 좌표")
    types: list[str] = Field(default_factory=list, description="장소 유형 목록")


class PlaceDetails(BaseModel):
    """상세 조회 결과. 요청한 필드만 채워지므로 모두 선택 값입니다."""

    place_id: str | None = Field(default=None, description="Google Places 고유 ID")
    name: str | None = Field(default=None, description="장소 이름")
    formatted_address: str | None = Field(default=None, description="장소 주소")
    location: PlaceLocation | None = Field(default=None, description="장소 좌표")
    types: list[str] | None = Field(default=None, description="장소 유형 목록")
    photo_references: list[str] = Field(default_factory=list, description="제공자 사진 참조 목록")
    reviews: list[ProviderReview] = Field(default_factory=list, description="리뷰 목록")


class PlaceSummary(BaseModel):
    """검색 결과 한 행."""

    place_id: str = Field(..., description="Google Places 고유 ID")
    name: str | None = Field(default=None, description="장소 이름")
    address: str | None = Field(default=None, description="장소 주소")
    location: PlaceLocation | None = Field(default=None, description="장소 좌표")
    types: list[str] = Field(default_factory=list, description="장소 유형 목록")
    thumbnail: str | None = Field(default=None, description="대표 썸네일 경로")
    maps_url: str = Field(..., description="구글 맵 장소 URL")


class SearchResponse(BaseModel):
    """검색 API 응답 모델."""

    query: str = Field(..., description="제공자에 전달한 검색 쿼리")
    results: list[PlaceSummary] = Field(default_factory=list, description="검색된 장소 목록")


class PlacePhoto(BaseModel):
    """제공자 사진 참조와 프록시 URL."""

    photo_reference: str = Field(..., description="제공자 사진 참조")
    url: str = Field(..., description="`/api/photo` 프록시 경로")


class PlaceDetailResponse(BaseModel):
    """장소 상세 API 응답 모델."""

    place_id: str = Field(..., description="Google Places 고유 ID")
    name: str | None = Field(default=None, description="장소 이름")
    address: str | None = Field(default=None, description="장소 주소")
    location: PlaceLocation | None = Field(default=None, description="장소 좌표")
    photos: list[PlacePhoto] = Field(default_factory=list, description="제공자 사진 목록")
    reviews: list[ProviderReview] = Field(default_factory=list, description="리뷰 목록")
    reviewsWithTerms: list[ProviderReview] = Field(default_factory=list, description="검색어가 포함된 리뷰")
    dishCandidates: list[str] = Field(default_factory=list, description="리뷰 빈도 상위 키워드")
    maps_url: str = Field(..., description="구글 맵 장소 URL")
    userPhotos: list[UserPhoto] = Field(default_factory=list, description="사용자 업로드 사진")
