"""Shared fixtures for catalog tree tests."""

import json
from pathlib import Path

import pytest
from PIL import Image

from rohdb.assets.raster import Rasterizer


class FakeRasterizer(Rasterizer):
    """Writes a placeholder PNG and records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path, int, int]] = []

    async def rasterize(self, source: Path, target: Path, width: int, height: int) -> None:
        self.calls.append((source, target, width, height))
        Image.new("RGB", (width, height), "white").save(target, format="PNG")


@pytest.fixture
def write_info():
    """Write an info.json (creating directories) and return its directory."""

    def _write(directory: Path, data: dict) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "info.json").write_text(json.dumps(data, indent=2), encoding="utf-8")
        return directory

    return _write


@pytest.fixture
def make_png():
    """Create a PNG of the given size; color varies the file content."""

    def _make(path: Path, size: tuple[int, int] = (1024, 1024), color: str = "black") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, color).save(path, format="PNG")
        return path

    return _make


@pytest.fixture
def fake_rasterizer() -> FakeRasterizer:
    return FakeRasterizer()


SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="96" height="64">'
    '<rect width="96" height="64" fill="none" stroke="black"/></svg>'
)


@pytest.fixture
def make_svg():
    def _make(path: Path, content: str = SVG) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _make


VENDOR = {"name": "Sennheiser", "blurb": "German audio company."}
PRODUCT = {"name": "HD 600", "blurb": "Open-back reference.", "type": "headphones", "subtype": "over_the_ear"}
EQ = {
    "author": "AutoEQ",
    "details": "Measured by oratory1990",
    "type": "parametric_eq",
    "parameters": {
        "gain_db": -6.0,
        "bands": [
            {"type": "low_shelf", "frequency": 105, "gain_db": 5.5, "q": 0.7},
            {"type": "peak_dip", "frequency": 2000, "gain_db": -2.0, "q": 1.4},
        ],
    },
}


@pytest.fixture
def sample_records() -> dict:
    """Valid vendor, product and EQ payloads (deep copies per test)."""
    return json.loads(json.dumps({"vendor": VENDOR, "product": PRODUCT, "eq": EQ}))
