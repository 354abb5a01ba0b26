"""음식점 검색 API."""

from fastapi import APIRouter, Depends, Query

from dishmap.api.dependencies import get_search_aggregator
from dishmap.core.errors import RequestFailed, UpstreamError
from dishmap.core.logger import get_logger
from dishmap.schemas.place import SearchResponse
from dishmap.services.search_service import SearchAggregator, parse_terms

router = APIRouter(prefix="/api", tags=["search"])
logger = get_logger(__name__)


@router.get("/search", response_model=SearchResponse)
async def search_places(
    terms: str | None = Query(default=None, description="쉼표로 구분된 요리/맛 검색어"),
    aggregator: SearchAggregator = Depends(get_search_aggregator),  # noqa: B008
) -> SearchResponse:
    """검색어에 맞는 홍콩 음식점 목록을 반환합니다."""
    parsed = parse_terms(terms)
    logger.info("Search request received: terms=%s", parsed)

    try:
        return await aggregator.search(parsed)
    except UpstreamError as exc:
        raise RequestFailed("Search failed", code=exc.code, details=exc.details or exc.message) from exc
