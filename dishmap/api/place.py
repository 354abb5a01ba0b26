"""장소 상세 API."""

from fastapi import APIRouter, Depends, Query

from dishmap.api.dependencies import get_place_detail_aggregator
from dishmap.core.errors import RequestFailed, UpstreamError
from dishmap.core.logger import get_logger
from dishmap.schemas.place import PlaceDetailResponse
from dishmap.services.place_detail_service import PlaceDetailAggregator
from dishmap.services.search_service import parse_terms

router = APIRouter(prefix="/api", tags=["place"])
logger = get_logger(__name__)


@router.get("/place", response_model=PlaceDetailResponse)
async def get_place(
    place_id: str | None = Query(default=None, description="Google Places ID"),
    terms: str | None = Query(default=None, description="리뷰/사용자 사진 필터용 검색어"),
    aggregator: PlaceDetailAggregator = Depends(get_place_detail_aggregator),  # noqa: B008
) -> PlaceDetailResponse:
    """장소 상세, 검색어가 포함된 리뷰, 리뷰 키워드, 사용자 사진을 반환합니다."""
    logger.info("Place request received: place_id=%s", place_id)

    try:
        return await aggregator.get_detail(place_id, parse_terms(terms))
    except UpstreamError as exc:
        raise RequestFailed("Place fetch failed", code=exc.code, details=exc.details or exc.message) from exc
