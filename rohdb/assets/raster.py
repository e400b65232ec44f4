"""
Raster Collaborators

Rasterizer: renders SVG line art to PNG (rsvg-convert subprocess).
ImageProber: reports format and size of a raster image (Pillow).
PdfRenderer: renders the EQ table region of a PDF page to PNG (ImageMagick).

All are injected (into AssetStore, or the Oratory importer) so tests can
substitute fakes.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from rohdb.errors import AssetConstraintError, SubprocessError


@dataclass(frozen=True)
class ImageInfo:
    """Decoded image format ("PNG", "JPEG", ...) and pixel size."""

    width: int
    height: int
    format: str


class Rasterizer(ABC):
    """Abstract interface for vector -> raster conversion."""

    @abstractmethod
    async def rasterize(self, source: Path, target: Path, width: int, height: int) -> None:
        """Render source into target at width x height, preserving aspect ratio."""
        ...


class ImageProber(ABC):
    """Abstract interface for raster metadata probes."""

    @abstractmethod
    def probe(self, path: Path) -> ImageInfo:
        """Return format and dimensions of the image at path."""
        ...


class PdfRenderer(ABC):
    """Abstract interface for PDF -> PNG rendering."""

    @abstractmethod
    async def render(self, source: Path, target: Path) -> None:
        """Render the relevant region of source into the PNG file target."""
        ...


async def _run(cmd: list[str]) -> None:
    """
    Run an external tool, discarding stdout.

    Raises:
        SubprocessError: If the command cannot be started or exits non-zero
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise SubprocessError(cmd, None, str(e)) from e

    _, stderr = await process.communicate()
    if process.returncode != 0:
        raise SubprocessError(cmd, process.returncode, stderr.decode(errors="replace"))


class RsvgRasterizer(Rasterizer):
    """
    Rasterizer backed by librsvg's rsvg-convert.

    Args:
        command: Executable name or path (default: "rsvg-convert")
    """

    def __init__(self, command: str = "rsvg-convert") -> None:
        self.command = command

    def build_command(self, source: Path, target: Path, width: int, height: int) -> list[str]:
        return [
            self.command,
            "--keep-aspect-ratio",
            "-w",
            str(width),
            "-h",
            str(height),
            str(source),
            "-o",
            str(target),
        ]

    async def rasterize(self, source: Path, target: Path, width: int, height: int) -> None:
        """
        Run rsvg-convert.

        Raises:
            SubprocessError: If the command cannot be started or exits non-zero
        """
        await _run(self.build_command(source, target, width, height))


class MagickPdfRenderer(PdfRenderer):
    """
    PdfRenderer backed by ImageMagick's convert.

    Renders at 300 dpi on a white background and crops to the band of the
    page holding the filter table.

    Args:
        command: Executable name or path (default: "convert")
        crop: ImageMagick crop geometry applied after rendering
    """

    def __init__(self, command: str = "convert", crop: str = "60%x20%+0+2400") -> None:
        self.command = command
        self.crop = crop

    def build_command(self, source: Path, target: Path) -> list[str]:
        return [
            self.command,
            "-density", "300",
            "-quality", "100",
            "-background", "white",
            "-flatten",
            str(source),
            "-crop", self.crop,
            "-trim",
            str(target),
        ]

    async def render(self, source: Path, target: Path) -> None:
        """
        Run convert.

        Raises:
            SubprocessError: If the command cannot be started or exits non-zero
        """
        await _run(self.build_command(source, target))


class PillowImageProber(ImageProber):
    """Image probe that decodes the header with Pillow."""

    def probe(self, path: Path) -> ImageInfo:
        try:
            with Image.open(path) as image:
                return ImageInfo(width=image.width, height=image.height, format=image.format or "")
        except (UnidentifiedImageError, OSError) as e:
            raise AssetConstraintError(f"Image {path} could not be decoded: {e}") from e
