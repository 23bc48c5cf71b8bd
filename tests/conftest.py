import sys
from pathlib import Path

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from .repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def make_png(tmp_path: Path):
    """Write a small RGB PNG carrying the given tEXt chunks."""

    def _make(name: str = "image.png", size=(64, 32), **chunks) -> Path:
        path = tmp_path / name
        info = PngInfo()
        for key, value in chunks.items():
            info.add_text(key, value)
        Image.new("RGB", size, "black").save(path, pnginfo=info)
        return path

    return _make


@pytest.fixture
def make_jpeg(tmp_path: Path):
    """Write a small JPEG with IFD0 EXIF tags given as {tag_id: value}."""

    def _make(name: str = "photo.jpg", size=(40, 30), tags=None) -> Path:
        path = tmp_path / name
        img = Image.new("RGB", size, "white")
        exif = Image.Exif()
        for tag_id, value in (tags or {}).items():
            exif[tag_id] = value
        img.save(path, exif=exif)
        return path

    return _make
