"""Shared fixtures: synthetic images written into tmp_path with Pillow."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from resizer.config import ResizeConfig
from resizer.engine import ImageResizer
from resizer.store import ArtifactStore

CAMERA_MAKE = "TestCam"


def _gradient(size: tuple[int, int], mode: str = "RGB") -> Image.Image:
    w, h = size
    im = Image.linear_gradient("L").resize(size)
    if mode == "L":
        return im
    r = im
    g = im.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    b = Image.new("L", size, 128)
    rgb = Image.merge("RGB", (r, g, b))
    if mode == "RGBA":
        rgba = rgb.convert("RGBA")
        rgba.putalpha(Image.new("L", (w, h), 200))
        return rgba
    return rgb.convert(mode)


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Write an image and return its path.

    make_image((2000, 1000)) -> a 2000x1000 JPEG without EXIF.
    """

    def _make(
        size: tuple[int, int],
        name: str = "source.jpg",
        fmt: str = "JPEG",
        mode: str = "RGB",
        exif: Image.Exif | None = None,
    ) -> Path:
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        im = _gradient(size, mode)
        kwargs = {}
        if exif is not None:
            kwargs["exif"] = exif.tobytes()
        im.save(path, format=fmt, **kwargs)
        return path

    return _make


@pytest.fixture
def camera_exif() -> Image.Exif:
    exif = Image.Exif()
    exif[0x010F] = CAMERA_MAKE  # Make
    return exif


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(tmp_path / "slots")


@pytest.fixture
def resizer(store: ArtifactStore) -> ImageResizer:
    return ImageResizer(ResizeConfig(), store)
