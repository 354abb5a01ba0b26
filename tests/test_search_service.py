"""검색 집계 서비스 테스트."""

from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timezone

import pytest

from dishmap.core.errors import MissingTerms, UpstreamError
from dishmap.schemas.upload import UploadRecord
from dishmap.services.record_store import InMemoryRecordStore
from dishmap.services.search_service import (
    SearchAggregator,
    build_search_query,
    gather_fail_fast,
    google_maps_url,
    parse_terms,
)
from tests.mocks.mock_places_service import MockGooglePlacesService, make_places


def _record(place_id: str, *, record_id: str, thumb_url: str | None) -> UploadRecord:
    return UploadRecord(
        id=record_id,
        filename=f"{record_id}.jpg",
        url=f"/uploads/{record_id}.jpg",
        thumb_url=thumb_url,
        preview_url=None,
        place_id=place_id,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_build_search_query_quotes_multi_word_terms() -> None:
    query = build_search_query(["wonton", "beef brisket"])

    assert query == 'wonton OR "beef brisket" restaurants in Hong Kong'


def test_parse_terms_trims_and_drops_empty_entries() -> None:
    assert parse_terms(" wonton , ,beef brisket,") == ["wonton", "beef brisket"]
    assert parse_terms(None) == []


def test_search_rejects_empty_terms() -> None:
    aggregator = SearchAggregator(MockGooglePlacesService(), InMemoryRecordStore())

    with pytest.raises(MissingTerms):
        asyncio.run(aggregator.search(["  ", ""]))


def test_search_caps_results_at_twenty_and_keeps_candidate_order() -> None:
    places = MockGooglePlacesService(make_places(25))
    aggregator = SearchAggregator(places, InMemoryRecordStore(), max_results=50)

    response = asyncio.run(aggregator.search(["dim sum"]))

    assert len(response.results) == 20
    assert [result.place_id for result in response.results] == [f"mock_place_{i}" for i in range(20)]
    assert len(places.detail_calls) == 20
    assert response.query == '"dim sum" restaurants in Hong Kong'


def test_search_builds_summary_with_photo_thumbnail_and_maps_url() -> None:
    aggregator = SearchAggregator(MockGooglePlacesService(), InMemoryRecordStore())

    response = asyncio.run(aggregator.search(["wonton"]))
    first = response.results[0]

    assert first.place_id == "ChIJmak-wonton-01"
    assert first.thumbnail == "/api/photo?photoreference=photo-mak-1&maxwidth=400"
    assert first.maps_url == google_maps_url("ChIJmak-wonton-01")
    assert first.maps_url == "https://www.google.com/maps/place/?q=place_id:ChIJmak-wonton-01"
    assert first.location is not None
    assert first.location.lat == pytest.approx(22.2839)


def test_search_falls_back_to_first_uploaded_thumbnail() -> None:
    store = InMemoryRecordStore(
        [
            _record("ChIJkau-brisket-02", record_id="a", thumb_url=None),
            _record("other-place", record_id="b", thumb_url="/uploads/b_thumb.jpg"),
            _record("ChIJkau-brisket-02", record_id="c", thumb_url="/uploads/c_thumb.jpg"),
            _record("ChIJkau-brisket-02", record_id="d", thumb_url="/uploads/d_thumb.jpg"),
        ]
    )
    aggregator = SearchAggregator(MockGooglePlacesService(), store)

    response = asyncio.run(aggregator.search(["brisket"]))
    brisket = next(result for result in response.results if result.place_id == "ChIJkau-brisket-02")

    assert brisket.thumbnail == "/uploads/c_thumb.jpg"


def test_search_thumbnail_is_none_without_photos_or_uploads() -> None:
    aggregator = SearchAggregator(MockGooglePlacesService(), InMemoryRecordStore())

    response = asyncio.run(aggregator.search(["brisket"]))
    brisket = next(result for result in response.results if result.place_id == "ChIJkau-brisket-02")

    assert brisket.thumbnail is None


def test_search_fails_entirely_when_one_detail_fetch_fails() -> None:
    places = MockGooglePlacesService(make_places(5), failing_place_ids={"mock_place_2"})
    aggregator = SearchAggregator(places, InMemoryRecordStore())

    with pytest.raises(UpstreamError):
        asyncio.run(aggregator.search(["noodles"]))


def test_search_propagates_text_search_failure() -> None:
    aggregator = SearchAggregator(MockGooglePlacesService(fail_search=True), InMemoryRecordStore())

    with pytest.raises(UpstreamError):
        asyncio.run(aggregator.search(["noodles"]))


def test_gather_fail_fast_cancels_pending_work() -> None:
    cancelled: list[int] = []

    async def _slow(index: int) -> int:
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.append(index)
            raise
        return index

    async def _boom() -> int:
        await asyncio.sleep(0)
        raise UpstreamError(details="boom")

    async def _run() -> None:
        await gather_fail_fast([_slow(0), _boom(), _slow(2)])

    with pytest.raises(UpstreamError):
        asyncio.run(_run())

    assert sorted(cancelled) == [0, 2]


def test_gather_fail_fast_preserves_input_order() -> None:
    async def _delayed(value: int, delay: float) -> int:
        await asyncio.sleep(delay)
        return value

    result = asyncio.run(gather_fail_fast([_delayed(1, 0.03), _delayed(2, 0.0), _delayed(3, 0.01)]))

    assert result == [1, 2, 3]


class _ThreadRecordingStore(InMemoryRecordStore):
    def __init__(self, records=None) -> None:
        super().__init__(records)
        self.read_threads: list[threading.Thread] = []

    def all_or_empty(self):
        self.read_threads.append(threading.current_thread())
        return super().all_or_empty()


def test_search_reads_uploads_once_off_the_event_loop() -> None:
    store = _ThreadRecordingStore([_record("ChIJkau-brisket-02", record_id="c", thumb_url="/uploads/c_thumb.jpg")])
    aggregator = SearchAggregator(MockGooglePlacesService(), store)

    response = asyncio.run(aggregator.search(["brisket"]))

    assert len(store.read_threads) == 1
    assert store.read_threads[0] is not threading.main_thread()
    assert response.results[1].thumbnail == "/uploads/c_thumb.jpg"


def test_search_skips_upload_read_when_every_place_has_photos() -> None:
    store = _ThreadRecordingStore()
    places = MockGooglePlacesService()
    places.places = [place for place in places.places if place.get("photos")]
    aggregator = SearchAggregator(places, store)

    asyncio.run(aggregator.search(["wonton"]))

    assert store.read_threads == []
