"""API 의존성 모음.

서비스는 프로세스 단위 싱글톤이며, 테스트에서는 `app.dependency_overrides`로 교체합니다.
"""

from functools import lru_cache

from fastapi import Depends

from dishmap.core.config import get_settings
from dishmap.services.google_places_service import get_google_places_service
from dishmap.services.ingestion_service import IngestionService
from dishmap.services.place_detail_service import PlaceDetailAggregator
from dishmap.services.places_service import PlacesServiceProtocol
from dishmap.services.record_store import JsonFileRecordStore, RecordStore
from dishmap.services.search_service import SearchAggregator


def get_places_service() -> PlacesServiceProtocol:
    """Places 게이트웨이를 제공합니다."""
    return get_google_places_service()


@lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    """업로드 메타데이터 저장소를 제공합니다. 쓰기 락을 공유하도록 단일 인스턴스를 유지합니다."""
    return JsonFileRecordStore(get_settings().metadata_path)


def get_ingestion_service(record_store: RecordStore = Depends(get_record_store)) -> IngestionService:  # noqa: B008
    """업로드 수집 서비스를 제공합니다."""
    return IngestionService.from_settings(record_store)


def get_search_aggregator(
    places_service: PlacesServiceProtocol = Depends(get_places_service),  # noqa: B008
    record_store: RecordStore = Depends(get_record_store),  # noqa: B008
) -> SearchAggregator:
    """검색 집계 서비스를 제공합니다."""
    settings = get_settings()
    return SearchAggregator(
        places_service,
        record_store,
        region_qualifier=settings.SEARCH_REGION_QUALIFIER,
        max_results=settings.SEARCH_MAX_RESULTS,
    )


def get_place_detail_aggregator(
    places_service: PlacesServiceProtocol = Depends(get_places_service),  # noqa: B008
    record_store: RecordStore = Depends(get_record_store),  # noqa: B008
) -> PlaceDetailAggregator:
    """장소 상세 집계 서비스를 제공합니다."""
    return PlaceDetailAggregator(places_service, record_store)
