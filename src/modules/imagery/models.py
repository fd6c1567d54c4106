"""
Imagery Data Model

Request-scoped, write-once values flowing through the pipeline:
- ImageMetadata: decoded dimensions and EXIF orientation
- SizeSet: target widths per variant
- VariantBundle: the five encoded JPEG variants
- PlaceholderArtifact: the SVG placeholder
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class VariantName(str, Enum):
    """Raster variants, in bundle order."""
    MICRO = "micro"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    FULL = "full"


class ImageMetadata(BaseModel):
    """Dimensions as stored in the file, plus the EXIF orientation flag."""
    model_config = ConfigDict(frozen=True)

    width: Optional[int] = None
    height: Optional[int] = None
    orientation: int = 1
    format: Optional[str] = None

    @property
    def is_rotated(self) -> bool:
        # Orientations 5-8 embed a 90/270 degree rotation; other values are ignored
        return 5 <= self.orientation <= 8

    @property
    def effective_size(self) -> Tuple[Optional[int], Optional[int]]:
        """(width, height) after orientation correction."""
        if self.is_rotated:
            return self.height, self.width
        return self.width, self.height


class SizeSet(BaseModel):
    """Target pixel widths for each variant."""
    model_config = ConfigDict(frozen=True)

    micro: int
    small: int
    medium: int
    large: int
    full: int

    def width_for(self, variant: VariantName) -> int:
        return getattr(self, variant.value)


class EncodedVariant(BaseModel):
    """One encoded JPEG and the pixel size it was produced at."""
    model_config = ConfigDict(frozen=True)

    name: VariantName
    width: int
    height: int
    content: bytes = Field(repr=False)

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class VariantBundle(BaseModel):
    """All five raster variants. Either complete or not produced at all."""
    model_config = ConfigDict(frozen=True)

    micro: EncodedVariant
    small: EncodedVariant
    medium: EncodedVariant
    large: EncodedVariant
    full: EncodedVariant

    def ordered(self) -> List[EncodedVariant]:
        return [getattr(self, variant.value) for variant in VariantName]

    def byte_sizes(self) -> Dict[str, int]:
        return {variant.name.value: variant.size_bytes for variant in self.ordered()}

    def dimensions(self) -> Dict[str, Tuple[int, int]]:
        return {variant.name.value: (variant.width, variant.height) for variant in self.ordered()}


class PlaceholderArtifact(BaseModel):
    """Vector placeholder markup traced from the source image."""
    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes = Field(repr=False)
    width: int
    height: int

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    def as_text(self) -> str:
        return self.content.decode("utf-8")


class VariationResult(BaseModel):
    """Everything a single pipeline run produces."""
    model_config = ConfigDict(frozen=True)

    variants: VariantBundle
    placeholder: PlaceholderArtifact
    source_size: int
