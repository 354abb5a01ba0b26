"""업로드 원본에서 썸네일/미리보기 JPEG 변형본을 생성합니다."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from dishmap.core.errors import MediaProcessingError
from dishmap.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class VariantSpec:
    suffix: str
    max_width: int
    quality: int


THUMB = VariantSpec(suffix="_thumb", max_width=400, quality=80)
PREVIEW = VariantSpec(suffix="_preview", max_width=160, quality=75)


@dataclass(frozen=True, slots=True)
class MediaVariants:
    """생성된 변형본 파일명 (원본과 같은 디렉터리)."""

    thumb_filename: str
    preview_filename: str


def _resize_to_width(image: Image.Image, max_width: int) -> Image.Image:
    """가로 폭만 제한하고 비율을 유지합니다. 원본보다 키우지 않습니다."""
    width, height = image.size
    if width <= max_width:
        return image.copy()
    new_height = max(1, round(height * max_width / width))
    return image.resize((max_width, new_height), Image.Resampling.LANCZOS)


def _to_jpeg_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def _render_variant(source: Image.Image, spec: VariantSpec, destination: Path) -> None:
    variant = _to_jpeg_mode(_resize_to_width(source, spec.max_width))
    variant.save(destination, format="JPEG", quality=spec.quality, optimize=True)


def derive_variants(original_path: str | Path) -> MediaVariants:
    """EXIF 방향을 반영한 뒤 400px 썸네일과 160px 미리보기를 생성합니다.

    Args:
        original_path: 원본 이미지 경로. 변형본은 `<stem>_thumb.jpg`, `<stem>_preview.jpg`로 저장됩니다.

    Raises:
        MediaProcessingError: 이미지를 읽거나 인코딩할 수 없는 경우. 부분 생성된 파일은 삭제됩니다.
    """
    original = Path(original_path)
    targets = [
        (spec, original.with_name(f"{original.stem}{spec.suffix}.jpg"))
        for spec in (THUMB, PREVIEW)
    ]

    try:
        with Image.open(original) as opened:
            oriented = ImageOps.exif_transpose(opened)
            oriented.load()
            for spec, destination in targets:
                _render_variant(oriented, spec, destination)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        for _, destination in targets:
            destination.unlink(missing_ok=True)
        raise MediaProcessingError(details=f"{original.name}: {exc}") from exc

    logger.info("Image variants generated: original=%s", original.name)
    return MediaVariants(thumb_filename=targets[0][1].name, preview_filename=targets[1][1].name)
