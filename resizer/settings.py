from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


# Formats a derivative can be re-encoded to.
OutputFormat = Literal["jpeg", "png", "webp"]

FORMAT_TO_EXT = {
    "jpeg": ".jpg",
    "png": ".png",
    "webp": ".webp",
}


class MetadataStrategy(str, Enum):
    """What happens to the source's EXIF block when a derivative is written."""

    NONE = "none"              # re-encode pixels only
    PRESERVE = "preserve"      # copy the source EXIF if it has one
    SYNTHESIZE = "synthesize"  # copy it, or write a DateTimeOriginal tag when absent


@dataclass(frozen=True)
class EncodeSettings:
    """
    Encoder knobs shared by every profile of a ResizeConfig.

    We keep this as a pure data object (no logic) so:
    - it's easy to test
    - one instance can be shared across many resize calls
    - the CLI can build it straight from arguments
    """

    # ----- Output -----
    output_format: OutputFormat = "jpeg"

    # ----- Metadata -----
    metadata: MetadataStrategy = MetadataStrategy.SYNTHESIZE

    # ----- Scaling -----
    # Name of a PIL.Image.Resampling member, lower case.
    resample: str = "lanczos"

    # ----- JPEG encoding -----
    jpeg_quality: int = 90
    jpeg_progressive: bool = False
    jpeg_optimize: bool = True

    # ----- PNG encoding -----
    # Pillow uses "compress_level" (0-9). Higher = smaller but slower.
    png_compress_level: int = 6
    png_optimize: bool = False

    # ----- WebP encoding -----
    webp_quality: int = 85
    webp_lossless: bool = False
    webp_method: int = 4  # 0-6, higher = smaller but slower

    # ----- JPEG flattening behavior (when source has transparency) -----
    jpeg_background: tuple[int, int, int] = (255, 255, 255)

    @property
    def extension(self) -> str:
        return FORMAT_TO_EXT[self.output_format]
