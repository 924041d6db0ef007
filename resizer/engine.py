from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from PIL import ExifTags, Image, ImageOps

from .config import ProfileKey, ResizeConfig, ResizeProfile, resampling_filter
from .errors import ConfigurationError, DecodeFailure, EncodeFailure, ResizerError, SourceUnavailable
from .geometry import Dimension, compute_output_size, compute_sample_size
from .results import ResizeOutcome, ResizeResult, SkipReason
from .settings import EncodeSettings, MetadataStrategy
from .source import ImageSource, SourceLike, as_source
from .store import ArtifactSlot, ArtifactStore


logger = logging.getLogger(__name__)

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

# Modes each encoder writes without conversion.
JPEG_MODES = ("RGB", "L", "CMYK")
PNG_MODES = ("RGB", "RGBA", "L", "LA", "1", "P", "I", "I;16")
WEBP_MODES = ("RGB", "RGBA")

_REASONS = {
    SourceUnavailable: SkipReason.SOURCE_UNAVAILABLE,
    DecodeFailure: SkipReason.DECODE_FAILED,
    EncodeFailure: SkipReason.ENCODE_FAILED,
}


class ImageResizer:
    """
    Produces scaled copies of an image for every enabled profile of a
    ResizeConfig and writes them into an ArtifactStore.

    Each copy keeps the source's aspect ratio and is made as large as
    possible without exceeding its profile's box. The source is decoded
    at a reduced power-of-two scale first, so a 4000px photo never has to
    be held in memory at full size just to produce a 256px thumbnail.

    ``resize`` is synchronous. Wrap it with ``tasks.ResizeTask`` to run it
    in the background and get a callback.
    """

    def __init__(self, config: Optional[ResizeConfig] = None, store: Optional[ArtifactStore] = None) -> None:
        self.config = config if config is not None else ResizeConfig()
        self._store = store

    @property
    def store(self) -> ArtifactStore:
        if self._store is None:
            self._store = ArtifactStore.temporary(extension=self.config.encode.extension)
        return self._store

    def resize(
        self,
        source: SourceLike,
        config: Optional[ResizeConfig] = None,
        store: Optional[ArtifactStore] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> ResizeOutcome:
        """
        Run every profile of ``config`` against ``source``.

        Always returns exactly one result per profile. A profile that is
        disabled, cancelled or fails gets a result with no artifact and a
        reason; it never stops the profiles after it. Only a bad config
        raises, and it does so before any file is touched.
        """
        config = config if config is not None else self.config
        store = store if store is not None else self.store
        config.validate()
        _check_store(store, config.encode)

        src = as_source(source)
        profiles = config.profiles()
        total = len(profiles)
        results: List[ResizeResult] = []

        for idx, profile in enumerate(profiles, start=1):
            if not profile.enabled:
                results.append(_skipped(profile, SkipReason.DISABLED))
                continue

            if cancel_event and cancel_event.is_set():
                results.append(_skipped(profile, SkipReason.CANCELLED))
                continue

            if progress_callback:
                progress_callback(idx, total)

            results.append(self._run_profile(src, profile, config.encode, store))

        outcome = ResizeOutcome(tuple(results), source=src.describe())
        logger.info(
            "resized %s: %d written, %d failed", src.describe(), outcome.succeeded, outcome.failed
        )
        return outcome

    def create(
        self,
        name: ProfileKey,
        source: SourceLike,
        store: Optional[ArtifactStore] = None,
    ) -> ResizeResult:
        """Produce one profile's copy, whether or not that profile is enabled."""
        self.config.validate()
        store = store if store is not None else self.store
        _check_store(store, self.config.encode)
        profile = self.config.profile(name)
        return self._run_profile(as_source(source), profile, self.config.encode, store)

    def scale_image(
        self,
        source: SourceLike,
        target: Dimension,
        encode: Optional[EncodeSettings] = None,
        store: Optional[ArtifactStore] = None,
    ) -> Tuple[ArtifactSlot, Dimension]:
        """
        Scale ``source`` to fit ``target`` and write it to the next slot.

        Returns the slot and the pixel size written. Raises
        SourceUnavailable, DecodeFailure or EncodeFailure.
        """
        src = as_source(source)
        encode = encode if encode is not None else self.config.encode
        store = store if store is not None else self.store

        bounds = src.probe()
        factor = compute_sample_size(bounds.width, bounds.height, target.width, target.height)
        logger.debug("%s: %s -> %s, sample size %d", src.describe(), bounds, target, factor)

        decoded = src.decode(factor)

        # Pixels get rotated upright when the orientation tag won't survive.
        if encode.metadata is MetadataStrategy.NONE:
            decoded = ImageOps.exif_transpose(decoded)

        out_size = compute_output_size(decoded.width, decoded.height, target.width, target.height)
        scaled = _apply_resize(decoded, out_size, encode)
        if scaled is not decoded:
            decoded.close()

        try:
            exif = _exif_for(src, encode.metadata)
            slot = store.allocate_slot()
            _encode(scaled, slot, encode, exif)
        finally:
            scaled.close()

        return slot, out_size

    def flush(self) -> None:
        """Delete every file the store may be holding."""
        self.store.flush()

    def close(self) -> None:
        """Flush the store and drop a temporary directory this resizer created."""
        if self._store is not None:
            self._store.cleanup()

    # ------------------------------------------------------------------

    def _run_profile(
        self,
        src: ImageSource,
        profile: ResizeProfile,
        encode: EncodeSettings,
        store: ArtifactStore,
    ) -> ResizeResult:
        try:
            slot, size = self.scale_image(src, profile.dimension, encode, store)
        except ResizerError as e:
            reason = _REASONS.get(type(e), SkipReason.ENCODE_FAILED)
            logger.warning("%s: %s profile failed (%s): %s", src.describe(), profile.name.value, reason.value, e)
            return _skipped(profile, reason, error=str(e))

        logger.debug("%s: %s profile -> %s (%s)", src.describe(), profile.name.value, slot.path, size)
        return ResizeResult(profile=profile.name, target=profile.dimension, artifact=slot, size=size)


def _check_store(store: ArtifactStore, encode: EncodeSettings) -> None:
    if store.extension != encode.extension:
        raise ConfigurationError(
            f"{encode.output_format} output needs a store with {encode.extension} slots, got {store.extension}"
        )


def _skipped(profile: ResizeProfile, reason: SkipReason, error: Optional[str] = None) -> ResizeResult:
    return ResizeResult(profile=profile.name, target=profile.dimension, reason=reason, error=error)


def _apply_resize(im: Image.Image, size: Dimension, s: EncodeSettings) -> Image.Image:
    if (size.width, size.height) == im.size:
        return im
    return im.resize((size.width, size.height), resampling_filter(s.resample))


def _exif_for(src: ImageSource, strategy: MetadataStrategy) -> Optional[Image.Exif]:
    if strategy is MetadataStrategy.NONE:
        return None

    exif = src.read_exif()
    if len(exif):
        return exif

    if strategy is MetadataStrategy.SYNTHESIZE:
        synthesized = Image.Exif()
        stamp = datetime.now().strftime(EXIF_DATETIME_FORMAT)
        # DateTimeOriginal belongs in the Exif sub-IFD, not IFD0.
        synthesized[ExifTags.IFD.Exif] = {ExifTags.Base.DateTimeOriginal: stamp}
        return synthesized

    return None


def _encode(im: Image.Image, slot: ArtifactSlot, s: EncodeSettings, exif: Optional[Image.Exif]) -> None:
    out_format = s.output_format

    # If converting to JPEG and image has alpha, flatten onto background.
    if out_format == "jpeg":
        if _has_alpha(im):
            im = _flatten_alpha(im, s.jpeg_background)
        elif im.mode not in JPEG_MODES:
            im = im.convert("RGB")
    elif out_format == "png" and im.mode not in PNG_MODES:
        im = im.convert("RGBA" if _has_alpha(im) else "RGB")
    elif out_format == "webp" and im.mode not in WEBP_MODES:
        im = im.convert("RGBA" if _has_alpha(im) else "RGB")

    save_kwargs = _build_save_kwargs(im, s, exif)

    # Pillow truncates the slot file on open, so a reused slot is simply replaced.
    try:
        im.save(slot.path, format=out_format.upper(), **save_kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailure(f"slot {slot.index} ({slot.path}): {e}") from e


def _build_save_kwargs(im: Image.Image, s: EncodeSettings, exif: Optional[Image.Exif]) -> dict:
    kwargs: dict = {}

    if exif is not None:
        kwargs["exif"] = exif.tobytes()

        icc = im.info.get("icc_profile")
        if icc is not None:
            kwargs["icc_profile"] = icc

    if s.output_format == "jpeg":
        kwargs["quality"] = int(s.jpeg_quality)
        kwargs["optimize"] = bool(s.jpeg_optimize)
        kwargs["progressive"] = bool(s.jpeg_progressive)

    elif s.output_format == "png":
        kwargs["compress_level"] = int(s.png_compress_level)
        kwargs["optimize"] = bool(s.png_optimize)

    elif s.output_format == "webp":
        kwargs["quality"] = int(s.webp_quality)
        kwargs["lossless"] = bool(s.webp_lossless)
        kwargs["method"] = int(s.webp_method)

    return kwargs


def _flatten_alpha(im: Image.Image, background_rgb: tuple[int, int, int]) -> Image.Image:
    # Ensure we are in RGBA so alpha exists
    rgba = im.convert("RGBA")
    bg = Image.new("RGBA", rgba.size, background_rgb + (255,))
    comp = Image.alpha_composite(bg, rgba)
    return comp.convert("RGB")


def _has_alpha(im: Image.Image) -> bool:
    if im.mode in ("RGBA", "LA", "PA"):
        return True
    if im.mode == "P" and "transparency" in im.info:
        return True
    return False
