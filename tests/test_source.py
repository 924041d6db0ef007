"""Tests for ImageSource probing and reduced-scale decoding."""

from pathlib import Path

import pytest

from resizer.errors import DecodeFailure, SourceUnavailable
from resizer.geometry import Dimension
from resizer.source import BytesSource, FileSource, as_source


def test_probe_reads_header(make_image):
    src = FileSource(make_image((640, 480)))
    assert src.probe() == Dimension(640, 480)


def test_probe_missing_file(tmp_path):
    with pytest.raises(SourceUnavailable):
        FileSource(tmp_path / "nope.jpg").probe()


def test_probe_garbage_bytes():
    with pytest.raises(SourceUnavailable):
        BytesSource(b"definitely not an image").probe()


def test_decode_garbage_bytes():
    with pytest.raises(DecodeFailure):
        BytesSource(b"definitely not an image").decode(2)


def test_decode_missing_file(tmp_path):
    with pytest.raises(SourceUnavailable):
        FileSource(tmp_path / "nope.jpg").decode()


@pytest.mark.parametrize("fmt,name", [("JPEG", "a.jpg"), ("PNG", "a.png")])
@pytest.mark.parametrize("factor,expected", [(1, (800, 600)), (2, (400, 300)), (4, (200, 150))])
def test_decode_at_factor(make_image, fmt, name, factor, expected):
    src = FileSource(make_image((800, 600), name=name, fmt=fmt))
    im = src.decode(factor)
    assert im.size == expected


def test_decode_beyond_jpeg_draft_range(make_image):
    # JPEG draft stops at 1/8, the rest is reduced
    src = FileSource(make_image((1600, 1600)))
    assert src.decode(16).size == (100, 100)


def test_decode_expands_palette(make_image):
    src = FileSource(make_image((64, 32), name="p.png", fmt="PNG", mode="P"))
    assert src.decode(2).mode == "RGB"


def test_bytes_source_reopens(make_image):
    data = Path(make_image((50, 40))).read_bytes()
    src = BytesSource(data, name="upload")

    assert src.probe() == Dimension(50, 40)
    assert src.probe() == Dimension(50, 40)
    assert src.decode().size == (50, 40)
    assert src.describe() == "upload"


def test_read_exif(make_image, camera_exif):
    src = FileSource(make_image((40, 40), exif=camera_exif))
    assert src.read_exif()[0x010F] == "TestCam"


def test_read_exif_absent(make_image):
    assert len(FileSource(make_image((40, 40))).read_exif()) == 0


def test_as_source(tmp_path):
    assert isinstance(as_source(tmp_path / "x.jpg"), FileSource)
    assert isinstance(as_source(str(tmp_path / "x.jpg")), FileSource)
    assert isinstance(as_source(b"abc"), BytesSource)
    src = BytesSource(b"abc")
    assert as_source(src) is src
    with pytest.raises(TypeError):
        as_source(42)  # type: ignore[arg-type]
