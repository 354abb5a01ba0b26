"""Google Places API 서비스 구현."""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any
from urllib.parse import urlencode

import requests

from dishmap.core.config import get_settings
from dishmap.core.errors import UpstreamError
from dishmap.core.logger import get_logger
from dishmap.core.timeout_policy import get_timeout_policy, to_requests_timeout
from dishmap.schemas.place import PlaceCandidate, PlaceDetails, PlaceLocation, ProviderReview
from dishmap.services.places_service import PlacesServiceProtocol

logger = get_logger(__name__)

_OK_STATUSES = {"OK"}
_SEARCH_OK_STATUSES = {"OK", "ZERO_RESULTS"}


class GooglePlacesError(RuntimeError):
    """Google Places 호출 설정 실패 시 발생하는 예외."""


class GooglePlacesService(PlacesServiceProtocol):
    """Google Places 웹 서비스 기반 Places 서비스."""

    _BASE_URL = "https://maps.googleapis.com/maps/api/place"
    _SEARCH_PATH = "/textsearch/json"
    _DETAILS_PATH = "/details/json"
    _PHOTO_PATH = "/photo"
    _SEARCH_PLACE_TYPE = "restaurant"

    def __init__(
        self,
        api_key: str,
        timeout_seconds: int = 10,
        language_code: str = "zh-TW",
    ) -> None:
        if not api_key:
            raise GooglePlacesError("GOOGLE_API_KEY is not configured.")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._language_code = language_code.strip() if language_code else ""

    @classmethod
    def from_settings(cls) -> GooglePlacesService:
        """애플리케이션 설정으로 서비스 인스턴스를 생성합니다."""
        settings = get_settings()
        timeout_policy = get_timeout_policy(settings)
        return cls(
            api_key=settings.GOOGLE_API_KEY,
            timeout_seconds=timeout_policy.google_places_timeout_seconds,
            language_code=settings.GOOGLE_PLACES_LANGUAGE_CODE,
        )

    async def text_search(self, query: str) -> list[PlaceCandidate]:
        """텍스트 쿼리로 음식점을 검색합니다."""
        params: dict[str, Any] = {"query": query, "type": self._SEARCH_PLACE_TYPE}
        data = await self._request(self._SEARCH_PATH, params, ok_statuses=_SEARCH_OK_STATUSES)

        candidates = [
            candidate
            for candidate in (self._map_candidate(item) for item in data.get("results") or [])
            if candidate
        ]
        logger.info("Google Places text search completed: candidate_count=%d", len(candidates))
        return candidates

    async def details(self, place_id: str, fields: tuple[str, ...]) -> PlaceDetails:
        """장소 상세 정보를 조회합니다."""
        params = {"place_id": place_id, "fields": ",".join(fields)}
        data = await self._request(self._DETAILS_PATH, params, ok_statuses=_OK_STATUSES)
        return self._map_details(data.get("result") or {})

    def photo_redirect_url(self, photo_reference: str, max_width: int) -> str:
        """API 키가 포함된 사진 URL을 생성합니다."""
        query = urlencode({"maxwidth": max_width, "photoreference": photo_reference, "key": self._api_key})
        return f"{self._BASE_URL}{self._PHOTO_PATH}?{query}"

    async def _request(self, path: str, params: dict[str, Any], *, ok_statuses: set[str]) -> dict[str, Any]:
        url = f"{self._BASE_URL}{path}"
        query = {**params, "key": self._api_key}
        if self._language_code:
            query["language"] = self._language_code
        request_timeout = to_requests_timeout(self._timeout_seconds)

        def _send() -> requests.Response:
            with requests.Session() as session:
                return session.get(url, params=query, timeout=request_timeout)

        try:
            response = await asyncio.to_thread(_send)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as exc:
            response = exc.response
            status_code = response.status_code if response is not None else None
            body = (response.text or "")[:200] if response is not None else ""
            logger.error("Google Places API error: path=%s status=%s body=%s", path, status_code, body)
            raise UpstreamError(details=f"HTTP {status_code} from places API") from exc
        except requests.RequestException as exc:
            logger.error("Google Places API request failed: path=%s error=%s", path, exc)
            raise UpstreamError(details=str(exc)) from exc
        except ValueError as exc:
            logger.error("Google Places API response parse failed: path=%s error=%s", path, exc)
            raise UpstreamError(details="invalid JSON from places API") from exc

        if not isinstance(data, dict):
            raise UpstreamError(details="unexpected places API payload")

        status = data.get("status")
        if status not in ok_statuses:
            message = data.get("error_message") or ""
            logger.error("Google Places API returned status=%s path=%s message=%s", status, path, message)
            raise UpstreamError(details=f"{status}: {message}" if message else str(status))

        return data

    @staticmethod
    def _map_location(raw: dict[str, Any]) -> PlaceLocation | None:
        location = (raw.get("geometry") or {}).get("location") or {}
        lat = location.get("lat")
        lng = location.get("lng")
        if lat is None or lng is None:
            return None
        return PlaceLocation(lat=lat, lng=lng)

    def _map_candidate(self, raw: dict[str, Any]) -> PlaceCandidate | None:
        place_id = raw.get("place_id")
        if not place_id:
            return None

        return PlaceCandidate(
            place_id=place_id,
            name=raw.get("name"),
            formatted_address=raw.get("formatted_address"),
            location=self._map_location(raw),
            types=raw.get("types") or [],
        )

    def _map_details(self, raw: dict[str, Any]) -> PlaceDetails:
        photo_references = [
            photo["photo_reference"] for photo in raw.get("photos") or [] if photo.get("photo_reference")
        ]
        reviews = [
            ProviderReview(
                author_name=review.get("author_name"),
                text=review.get("text"),
                rating=review.get("rating"),
                relative_time_description=review.get("relative_time_description"),
                author_url=review.get("author_url"),
            )
            for review in raw.get("reviews") or []
        ]

        return PlaceDetails(
            place_id=raw.get("place_id"),
            name=raw.get("name"),
            formatted_address=raw.get("formatted_address"),
            location=self._map_location(raw),
            types=raw.get("types"),
            photo_references=photo_references,
            reviews=reviews,
        )


@lru_cache(maxsize=1)
def get_google_places_service() -> GooglePlacesService:
    """설정 재사용을 위한 프로세스 단위 싱글톤을 반환합니다."""
    return GooglePlacesService.from_settings()
