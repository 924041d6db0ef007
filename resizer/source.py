from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO, Union

from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailure, SourceUnavailable
from .geometry import Dimension


class ImageSource:
    """
    A re-openable handle to the caller's input image.

    The resizer opens it several times per request (probe, decode, EXIF
    read, once per profile), so subclasses must hand out a fresh stream
    from every ``open()`` call.
    """

    def open(self) -> BinaryIO:
        raise NotImplementedError

    def describe(self) -> str:
        return self.__class__.__name__

    def probe(self) -> Dimension:
        """Read width/height from the header without decoding pixels."""
        try:
            with self.open() as fp, Image.open(fp) as im:
                w, h = im.size
        except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as e:
            raise SourceUnavailable(f"{self.describe()}: {e}") from e
        return Dimension(w, h)

    def decode(self, factor: int = 1) -> Image.Image:
        """
        Decode the image at roughly 1/factor of its size on each axis.

        JPEG sources let the decoder do the work through ``draft()`` (it
        can skip to 1/2, 1/4 or 1/8 scale); whatever is left over is
        reduced by block averaging.
        """
        factor = max(1, int(factor))
        try:
            fp = self.open()
        except OSError as e:
            raise SourceUnavailable(f"{self.describe()}: {e}") from e

        with fp:
            try:
                im = Image.open(fp)
                src_w, src_h = im.size

                if factor > 1:
                    im.draft(None, (max(1, src_w // factor), max(1, src_h // factor)))
                im.load()
                im = _normalize_mode(im)

                draft_scale = max(1, round(src_w / im.width))
                remainder = factor // draft_scale
                if remainder > 1:
                    im = im.reduce(remainder)

                return im
            except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as e:
                raise DecodeFailure(f"{self.describe()} at 1/{factor}: {e}") from e

    def read_exif(self) -> Image.Exif:
        try:
            with self.open() as fp, Image.open(fp) as im:
                return im.getexif()
        except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as e:
            raise SourceUnavailable(f"{self.describe()}: {e}") from e


class FileSource(ImageSource):
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def open(self) -> BinaryIO:
        return self.path.open("rb")

    def describe(self) -> str:
        return str(self.path)


class BytesSource(ImageSource):
    """An in-memory image, e.g. a body already received over the network."""

    def __init__(self, data: bytes, name: str = "<bytes>") -> None:
        self.data = bytes(data)
        self.name = name

    def open(self) -> BinaryIO:
        return io.BytesIO(self.data)

    def describe(self) -> str:
        return self.name


SourceLike = Union[ImageSource, str, Path, bytes, bytearray]


def as_source(obj: SourceLike) -> ImageSource:
    if isinstance(obj, ImageSource):
        return obj
    if isinstance(obj, (bytes, bytearray)):
        return BytesSource(obj)
    if isinstance(obj, (str, Path)):
        return FileSource(obj)
    raise TypeError(f"Can't use {type(obj).__name__} as an image source")


def _normalize_mode(im: Image.Image) -> Image.Image:
    # Palette images can't be resampled smoothly; expand them first.
    if im.mode == "P":
        return im.convert("RGBA" if "transparency" in im.info else "RGB")
    if im.mode in ("1", "I;16", "I", "F"):
        return im.convert("L")
    return im
