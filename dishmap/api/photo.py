"""제공자 사진 리다이렉트 API. 클라이언트에는 API 키를 노출하지 않습니다."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from dishmap.api.dependencies import get_places_service
from dishmap.core.errors import MissingPhotoReference, RequestFailed
from dishmap.core.logger import get_logger
from dishmap.services.places_service import PlacesServiceProtocol

router = APIRouter(prefix="/api", tags=["photo"])
logger = get_logger(__name__)

DEFAULT_PHOTO_MAX_WIDTH = 800
MAX_PHOTO_MAX_WIDTH = 1600


def resolve_max_width(raw: str | None) -> int:
    """`maxwidth` 값을 1..1600 범위로 보정합니다. 숫자가 아니면 기본값을 씁니다."""
    try:
        width = int(raw) if raw is not None else DEFAULT_PHOTO_MAX_WIDTH
    except ValueError:
        width = DEFAULT_PHOTO_MAX_WIDTH
    return min(MAX_PHOTO_MAX_WIDTH, max(1, width))


@router.get("/photo", response_class=RedirectResponse, status_code=status.HTTP_302_FOUND)
def redirect_photo(
    photoreference: str | None = Query(default=None, description="제공자 사진 참조"),
    maxwidth: str | None = Query(default=None, description="최대 가로 폭(px), 1..1600으로 보정"),
    places_service: PlacesServiceProtocol = Depends(get_places_service),  # noqa: B008
) -> RedirectResponse:
    """자격 증명이 붙은 제공자 사진 URL로 리다이렉트합니다."""
    if not photoreference:
        raise MissingPhotoReference()

    try:
        redirect_url = places_service.photo_redirect_url(photoreference, resolve_max_width(maxwidth))
    except Exception as exc:
        logger.error("Photo redirect construction failed: %s", exc)
        raise RequestFailed("Photo fetch failed", details=str(exc)) from exc

    return RedirectResponse(redirect_url, status_code=status.HTTP_302_FOUND)
