"""요리/맛 검색어로 홍콩 음식점을 검색하고 상세 정보로 보강하는 집계 서비스."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from typing import TypeVar
from urllib.parse import urlencode

from dishmap.core.errors import MissingTerms
from dishmap.core.logger import get_logger
from dishmap.schemas.place import PlaceCandidate, PlaceDetails, PlaceSummary, SearchResponse
from dishmap.schemas.upload import UploadRecord
from dishmap.services.places_service import SEARCH_DETAIL_FIELDS, PlacesServiceProtocol
from dishmap.services.record_store import RecordStore

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_REGION_QUALIFIER = "restaurants in Hong Kong"
MAX_SEARCH_RESULTS = 20
THUMBNAIL_MAX_WIDTH = 400
_MAPS_PLACE_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"


def google_maps_url(place_id: str) -> str:
    """장소 ID로 구글 맵 링크를 만듭니다."""
    return _MAPS_PLACE_URL.format(place_id=place_id)


def photo_proxy_url(photo_reference: str, max_width: int) -> str:
    """`/api/photo` 프록시 경로를 만듭니다. API 키는 포함하지 않습니다."""
    return f"/api/photo?{urlencode({'photoreference': photo_reference, 'maxwidth': max_width})}"


def parse_terms(raw: str | None) -> list[str]:
    """쉼표로 구분된 검색어를 잘라 공백을 제거하고 빈 항목을 버립니다."""
    return [term.strip() for term in (raw or "").split(",") if term.strip()]


def build_search_query(terms: Sequence[str], region_qualifier: str = DEFAULT_REGION_QUALIFIER) -> str:
    """검색어를 OR로 묶고 지역 한정어를 붙입니다. 공백이 있는 검색어는 따옴표로 감쌉니다."""
    quoted = [f'"{term}"' if " " in term else term for term in terms]
    return f"{' OR '.join(quoted)} {region_qualifier}"


async def gather_fail_fast(awaitables: Sequence[Awaitable[T]]) -> list[T]:
    """모두 성공하면 입력 순서대로 결과를 반환하고, 하나라도 실패하면 나머지를 취소한 뒤 예외를 전파합니다."""
    tasks = [asyncio.ensure_future(item) for item in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def first_uploaded_thumbnail(records: Sequence[UploadRecord], place_id: str) -> str | None:
    """저장 순서상 처음으로 썸네일이 있는 사용자 업로드의 썸네일 경로를 반환합니다."""
    for record in records:
        if record.place_id == place_id and record.thumb_url:
            return record.thumb_url
    return None


class SearchAggregator:
    """텍스트 검색 후 후보별 상세 조회를 병렬로 수행해 검색 결과를 구성합니다.

    상세 조회 중 하나라도 실패하면 요청 전체가 `UpstreamError`로 실패합니다.
    """

    def __init__(
        self,
        places_service: PlacesServiceProtocol,
        record_store: RecordStore,
        *,
        region_qualifier: str = DEFAULT_REGION_QUALIFIER,
        max_results: int = MAX_SEARCH_RESULTS,
    ) -> None:
        self._places_service = places_service
        self._record_store = record_store
        self._region_qualifier = region_qualifier
        self._max_results = min(MAX_SEARCH_RESULTS, max(1, max_results))

    async def search(self, terms: Sequence[str]) -> SearchResponse:
        """검색어 목록으로 장소 목록을 조회합니다.

        Raises:
            MissingTerms: 검색어가 비어 있는 경우
            UpstreamError: 검색 또는 상세 조회 실패
        """
        cleaned = [term.strip() for term in terms if term and term.strip()]
        if not cleaned:
            raise MissingTerms()

        query = build_search_query(cleaned, self._region_qualifier)
        candidates = (await self._places_service.text_search(query))[: self._max_results]

        async def _fetch_details(candidate: PlaceCandidate) -> PlaceDetails:
            return await self._places_service.details(candidate.place_id, SEARCH_DETAIL_FIELDS)

        details_list = await gather_fail_fast([_fetch_details(candidate) for candidate in candidates])

        # 제공자 사진이 없는 장소가 있을 때만 업로드 레코드를 한 번 읽는다.
        records: list[UploadRecord] = []
        if any(not details.photo_references for details in details_list):
            records = await asyncio.to_thread(self._record_store.all_or_empty)

        results = [
            self._to_summary(candidate, details, records)
            for candidate, details in zip(candidates, details_list)
        ]
        logger.info("Search completed: terms=%s results=%d", cleaned, len(results))
        return SearchResponse(query=query, results=results)

    @staticmethod
    def _to_summary(
        candidate: PlaceCandidate, details: PlaceDetails, uploaded_records: Sequence[UploadRecord]
    ) -> PlaceSummary:
        place_id = details.place_id or candidate.place_id

        thumbnail: str | None = None
        if details.photo_references:
            thumbnail = photo_proxy_url(details.photo_references[0], THUMBNAIL_MAX_WIDTH)
        else:
            thumbnail = first_uploaded_thumbnail(uploaded_records, place_id)

        return PlaceSummary(
            place_id=place_id,
            name=details.name or candidate.name,
            address=details.formatted_address or candidate.formatted_address,
            location=details.location or candidate.location,
            types=details.types or candidate.types,
            thumbnail=thumbnail,
            maps_url=google_maps_url(place_id),
        )
