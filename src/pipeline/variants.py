"""
Raster Variant Producer

Decodes the source once into an upright RGB image, then resamples and
encodes the five JPEG variants in worker threads. The decoded source is
shared read-only; every task returns its own buffer. The bundle is all or
nothing: the first failing task fails the whole call.
"""

import io
import math
import asyncio
from typing import List, NamedTuple, Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from src.core.config import PipelineConfig
from src.core.exceptions import InvalidImageError
from src.core.logging import get_logger, with_logging
from src.core.metrics import track_stage_latency
from src.modules.imagery.models import (
    EncodedVariant,
    ImageMetadata,
    SizeSet,
    VariantBundle,
    VariantName,
)

logger = get_logger(__name__)

EXIF_ORIENTATION_TAG = 0x0112

CHROMA_SUBSAMPLING = {
    "4:4:4": 0,
    "4:2:2": 1,
    "4:2:0": 2,
}


class VariantSpec(NamedTuple):
    name: VariantName
    width: int
    quality: int
    subsampling: Optional[int]  # None keeps the encoder default


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# =============================================================================
# Metadata & Sizing
# =============================================================================

def read_metadata(image_bytes: bytes) -> ImageMetadata:
    """Read dimensions and EXIF orientation without decoding pixels."""
    if not image_bytes:
        raise InvalidImageError("Invalid image: no source bytes", stage="variants")

    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            orientation = image.getexif().get(EXIF_ORIENTATION_TAG) or 1
            return ImageMetadata(
                width=image.width or None,
                height=image.height or None,
                orientation=int(orientation),
                format=image.format
            )
    except UnidentifiedImageError as e:
        raise InvalidImageError(f"Invalid image: {e}", stage="variants") from e


def effective_dimensions(metadata: ImageMetadata) -> Tuple[int, int]:
    """Orientation-corrected (width, height); both must be positive."""
    width, height = metadata.effective_size
    if not width or not height or width < 0 or height < 0:
        raise InvalidImageError(
            "Invalid image: dimensions could not be determined",
            stage="variants",
            details={"width": metadata.width, "height": metadata.height, "orientation": metadata.orientation}
        )
    return width, height


def compute_sizes(width: int, config: PipelineConfig) -> SizeSet:
    """Target widths: micro is absolute, the rest are fractions of width."""
    return SizeSet(
        micro=config.micro_width,
        small=max(1, round_half_up(width * config.small_fraction)),
        medium=max(1, round_half_up(width * config.medium_fraction)),
        large=max(1, round_half_up(width * config.large_fraction)),
        full=width,
    )


def variant_specs(sizes: SizeSet, config: PipelineConfig) -> List[VariantSpec]:
    """Micro is placeholder-grade; everything else is display quality."""
    if config.display_chroma_subsampling not in CHROMA_SUBSAMPLING:
        raise ValueError(f"Unknown chroma subsampling: {config.display_chroma_subsampling}")
    display_subsampling = CHROMA_SUBSAMPLING[config.display_chroma_subsampling]

    specs = [VariantSpec(VariantName.MICRO, sizes.micro, config.micro_quality, None)]
    for name in (VariantName.SMALL, VariantName.MEDIUM, VariantName.LARGE, VariantName.FULL):
        specs.append(VariantSpec(name, sizes.width_for(name), config.display_quality, display_subsampling))
    return specs


# =============================================================================
# Decode & Encode
# =============================================================================

def decode_source(image_bytes: bytes) -> Image.Image:
    """Fully decode to a detached, upright RGB image."""
    with Image.open(io.BytesIO(image_bytes)) as image:
        return ImageOps.exif_transpose(image).convert("RGB")


def encode_variant(source: Image.Image, spec: VariantSpec) -> EncodedVariant:
    """Resample source to spec.width (aspect preserved) and encode as JPEG."""
    if spec.width == source.width:
        image = source
    else:
        height = max(1, round_half_up(spec.width * source.height / source.width))
        image = source.resize((spec.width, height), Image.Resampling.LANCZOS)

    params = {"quality": spec.quality}
    if spec.subsampling is not None:
        params["subsampling"] = spec.subsampling

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", **params)

    return EncodedVariant(
        name=spec.name,
        width=image.width,
        height=image.height,
        content=buffer.getvalue()
    )


@with_logging("variants")
async def produce_variants(image_bytes: bytes, config: PipelineConfig) -> VariantBundle:
    """
    Produce the micro/small/medium/large/full JPEG bundle.

    Raises:
        InvalidImageError: empty bytes, undecodable input, or missing dimensions
    """
    metadata = read_metadata(image_bytes)
    width, height = effective_dimensions(metadata)
    sizes = compute_sizes(width, config)

    logger.info(
        "variant_sizes_computed",
        width=width,
        height=height,
        orientation=metadata.orientation,
        sizes=sizes.model_dump()
    )

    with track_stage_latency("variants"):
        source = await asyncio.to_thread(decode_source, image_bytes)
        encoded = await asyncio.gather(*(
            asyncio.to_thread(encode_variant, source, spec)
            for spec in variant_specs(sizes, config)
        ))

    return VariantBundle(**{variant.name.value: variant for variant in encoded})
