"""Places 서비스 추상 프로토콜 정의."""

from abc import ABC, abstractmethod

from dishmap.schemas.place import PlaceCandidate, PlaceDetails

SEARCH_DETAIL_FIELDS = ("name", "geometry", "formatted_address", "photos", "place_id", "types", "opening_hours")
PLACE_DETAIL_FIELDS = ("name", "geometry", "formatted_address", "photos", "place_id", "reviews")


class PlacesServiceProtocol(ABC):
    """Places API 호출을 위한 인터페이스를 정의합니다.

    구현체는 모든 실패를 `UpstreamError`로 알립니다.
    """

    @abstractmethod
    async def text_search(self, query: str) -> list[PlaceCandidate]:
        """텍스트 쿼리로 음식점 후보를 검색합니다.

        Args:
            query: 제공자에 그대로 전달할 검색 쿼리

        Returns:
            제공자가 반환한 순서의 후보 목록
        """
        raise NotImplementedError

    @abstractmethod
    async def details(self, place_id: str, fields: tuple[str, ...]) -> PlaceDetails:
        """장소 상세 정보를 조회합니다.

        Args:
            place_id: Google Places ID
            fields: 요청할 필드 목록

        Returns:
            장소 상세 정보
        """
        raise NotImplementedError

    @abstractmethod
    def photo_redirect_url(self, photo_reference: str, max_width: int) -> str:
        """자격 증명이 포함된 제공자 사진 URL을 생성합니다. 서버 내부에서만 사용합니다."""
        raise NotImplementedError
