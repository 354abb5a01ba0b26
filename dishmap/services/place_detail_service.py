"""장소 상세 조회 집계 서비스."""

from __future__ import annotations

import asyncio
import re
from collections import Counter
from collections.abc import Iterable, Sequence

from dishmap.core.errors import MissingPlaceId
from dishmap.core.logger import get_logger
from dishmap.schemas.place import PlaceDetailResponse, PlacePhoto, ProviderReview
from dishmap.schemas.upload import UploadRecord, UserPhoto
from dishmap.services.places_service import PLACE_DETAIL_FIELDS, PlacesServiceProtocol
from dishmap.services.record_store import RecordStore
from dishmap.services.search_service import google_maps_url, photo_proxy_url

logger = get_logger(__name__)

DETAIL_PHOTO_MAX_WIDTH = 800
DISH_CANDIDATE_LIMIT = 10
STOP_WORDS = frozenset({"the", "and", "of", "a", "is", "in", "to", "with", "on"})
_NON_WORD = re.compile(r"\W+", re.ASCII)


def normalize_terms(terms: Iterable[str]) -> list[str]:
    return [term.strip().lower() for term in terms if term and term.strip()]


def _contains_any(text: str | None, terms: Sequence[str]) -> bool:
    lowered = (text or "").lower()
    return any(term in lowered for term in terms)


def filter_reviews_by_terms(reviews: Sequence[ProviderReview], terms: Sequence[str]) -> list[ProviderReview]:
    """본문에 검색어가 하나라도 포함된 리뷰만 남깁니다. 검색어가 없으면 빈 목록입니다."""
    if not terms:
        return []
    return [review for review in reviews if _contains_any(review.text, terms)]


def filter_user_photos(records: Sequence[UploadRecord], terms: Sequence[str]) -> list[UploadRecord]:
    """`dish` 라벨에 검색어가 포함된 업로드만 남깁니다. 검색어가 없으면 모두 통과합니다."""
    if not terms:
        return list(records)
    return [record for record in records if _contains_any(record.dish, terms)]


def extract_dish_candidates(texts: Iterable[str | None], limit: int = DISH_CANDIDATE_LIMIT) -> list[str]:
    """리뷰 본문에서 자주 등장하는 단어 상위 `limit`개를 반환합니다.

    단어 경계는 ASCII 기준(`[A-Za-z0-9_]` 이외 문자)이므로 한자나 악센트 문자는 구분자로 취급됩니다.
    한 글자 토큰과 불용어는 제외하고, 빈도가 같으면 먼저 등장한 단어가 앞에 옵니다.
    """
    corpus = " ".join(text or "" for text in texts).lower()
    counts: Counter[str] = Counter()
    for token in _NON_WORD.split(corpus):
        if len(token) <= 1 or token in STOP_WORDS:
            continue
        counts[token] += 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:limit]]


class PlaceDetailAggregator:
    """한 장소의 상세 정보, 리뷰 매칭, 키워드, 사용자 사진을 하나의 응답으로 합칩니다."""

    def __init__(self, places_service: PlacesServiceProtocol, record_store: RecordStore) -> None:
        self._places_service = places_service
        self._record_store = record_store

    async def get_detail(self, place_id: str | None, terms: Sequence[str]) -> PlaceDetailResponse:
        """장소 상세를 조회합니다.

        Raises:
            MissingPlaceId: place_id가 비어 있는 경우
            UpstreamError: 상세 조회 실패
        """
        if not place_id or not place_id.strip():
            raise MissingPlaceId()

        normalized = normalize_terms(terms)
        details = await self._places_service.details(place_id, PLACE_DETAIL_FIELDS)
        resolved_id = details.place_id or place_id

        photos = [
            PlacePhoto(photo_reference=ref, url=photo_proxy_url(ref, DETAIL_PHOTO_MAX_WIDTH))
            for ref in details.photo_references
        ]
        reviews = list(details.reviews)
        stored = await asyncio.to_thread(self._record_store.all_or_empty)
        uploads = [record for record in stored if record.place_id == place_id]
        user_photos = [UserPhoto.from_record(record) for record in filter_user_photos(uploads, normalized)]
        reviews_with_terms = filter_reviews_by_terms(reviews, normalized)

        logger.info(
            "Place detail completed: place_id=%s reviews=%d matched=%d user_photos=%d",
            resolved_id,
            len(reviews),
            len(reviews_with_terms),
            len(user_photos),
        )
        return PlaceDetailResponse(
            place_id=resolved_id,
            name=details.name,
            address=details.formatted_address,
            location=details.location,
            photos=photos,
            reviews=reviews,
            reviewsWithTerms=reviews_with_terms,
            dishCandidates=extract_dish_candidates(review.text for review in reviews),
            maps_url=google_maps_url(resolved_id),
            userPhotos=user_photos,
        )
