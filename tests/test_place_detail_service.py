"""장소 상세 집계 서비스 테스트."""

from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timezone

import pytest

from dishmap.core.errors import MissingPlaceId, UpstreamError
from dishmap.schemas.place import ProviderReview
from dishmap.schemas.upload import UploadRecord
from dishmap.services.place_detail_service import (
    PlaceDetailAggregator,
    extract_dish_candidates,
    filter_reviews_by_terms,
)
from dishmap.services.record_store import InMemoryRecordStore
from tests.mocks.mock_places_service import MockGooglePlacesService

PLACE_ID = "ChIJmak-wonton-01"


def _record(record_id: str, place_id: str, dish: str) -> UploadRecord:
    return UploadRecord(
        id=record_id,
        filename=f"{record_id}.jpg",
        url=f"/uploads/{record_id}.jpg",
        thumb_url=f"/uploads/{record_id}_thumb.jpg",
        preview_url=f"/uploads/{record_id}_preview.jpg",
        place_id=place_id,
        dish=dish,
        uploader_name="tester",
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


def _store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        [
            _record("r1", PLACE_ID, "Shrimp Wonton"),
            _record("r2", PLACE_ID, "Beef Brisket Noodles"),
            _record("r3", "another-place", "Wonton"),
            _record("r4", PLACE_ID, ""),
        ]
    )


def test_extract_dish_candidates_ranks_repeated_word_first() -> None:
    candidates = extract_dish_candidates(["Great noodles and amazing broth, noodles!"])

    assert candidates == ["noodles", "great", "amazing", "broth"]


def test_extract_dish_candidates_is_deterministic_and_capped() -> None:
    texts = ["alpha beta gamma delta epsilon zeta eta theta iota kappa lambda mu beta", "the a of is x"]

    first = extract_dish_candidates(texts)
    second = extract_dish_candidates(texts)

    assert first == second
    assert len(first) == 10
    assert first[0] == "beta"
    assert first[1:] == ["alpha", "gamma", "delta", "epsilon", "zeta", "eta", "theta", "iota", "kappa"]


def test_extract_dish_candidates_skips_stop_words_and_single_characters() -> None:
    candidates = extract_dish_candidates(["The rice IS in a bowl with egg on top, x y z", None])

    assert candidates == ["rice", "bowl", "egg", "top"]


def test_extract_dish_candidates_splits_on_non_ascii_characters() -> None:
    candidates = extract_dish_candidates(["wonton wonton 雲吞麵好好食，推介！ café"])

    assert candidates == ["wonton", "caf"]


def test_filter_reviews_by_terms_is_empty_without_terms() -> None:
    reviews = [ProviderReview(text="wonton"), ProviderReview(text=None)]

    assert filter_reviews_by_terms(reviews, []) == []
    assert filter_reviews_by_terms(reviews, ["wonton"]) == [reviews[0]]


def test_get_detail_requires_place_id() -> None:
    aggregator = PlaceDetailAggregator(MockGooglePlacesService(), _store())

    with pytest.raises(MissingPlaceId):
        asyncio.run(aggregator.get_detail("", ["wonton"]))


def test_get_detail_matches_reviews_and_user_photos_case_insensitively() -> None:
    aggregator = PlaceDetailAggregator(MockGooglePlacesService(), _store())

    detail = asyncio.run(aggregator.get_detail(PLACE_ID, ["WONTON"]))

    assert detail.place_id == PLACE_ID
    assert [review.author_name for review in detail.reviewsWithTerms] == ["Ben"]
    assert all(review in detail.reviews for review in detail.reviewsWithTerms)
    assert [photo.id for photo in detail.userPhotos] == ["r1"]
    assert detail.dishCandidates[0] == "noodles"
    assert detail.maps_url.endswith(f"place_id:{PLACE_ID}")


def test_get_detail_without_terms_keeps_all_user_photos_but_no_matching_reviews() -> None:
    aggregator = PlaceDetailAggregator(MockGooglePlacesService(), _store())

    detail = asyncio.run(aggregator.get_detail(PLACE_ID, []))

    assert detail.reviewsWithTerms == []
    assert len(detail.reviews) == 2
    assert [photo.id for photo in detail.userPhotos] == ["r1", "r2", "r4"]


def test_get_detail_builds_photo_proxy_urls_at_800px() -> None:
    aggregator = PlaceDetailAggregator(MockGooglePlacesService(), InMemoryRecordStore())

    detail = asyncio.run(aggregator.get_detail(PLACE_ID, ["noodles"]))

    assert [photo.url for photo in detail.photos] == [
        "/api/photo?photoreference=photo-mak-1&maxwidth=800",
        "/api/photo?photoreference=photo-mak-2&maxwidth=800",
    ]
    assert detail.userPhotos == []


def test_get_detail_propagates_upstream_failure() -> None:
    places = MockGooglePlacesService(failing_place_ids={PLACE_ID})
    aggregator = PlaceDetailAggregator(places, _store())

    with pytest.raises(UpstreamError):
        asyncio.run(aggregator.get_detail(PLACE_ID, ["wonton"]))


def test_get_detail_reads_uploads_off_the_event_loop() -> None:
    read_threads: list[threading.Thread] = []

    class _Store(InMemoryRecordStore):
        def all_or_empty(self):
            read_threads.append(threading.current_thread())
            return super().all_or_empty()

    aggregator = PlaceDetailAggregator(MockGooglePlacesService(), _Store(_store().all()))

    response = asyncio.run(aggregator.get_detail(PLACE_ID, ["wonton"]))

    assert [photo.id for photo in response.userPhotos] == ["r1"]
    assert len(read_threads) == 1
    assert read_threads[0] is not threading.main_thread()
