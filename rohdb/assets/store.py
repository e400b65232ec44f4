"""
Content-Addressed Asset Store

Stores binary assets under the SHA-256 of their bytes so identical files are
kept once, and derives raster renderings of vector line art.

Layout (relative to the dist directory):
    assets/<h[0:2]>/<h[2:4]>/<h><ext>                      originals
    assets/<h[0:2]>/<h[2:4]>/<h>.<version>.<W>x<H>.png     derived rasters

The version tag is part of the derived key so a change in rasterization
policy never reuses outputs produced by an older policy.

Idempotency:
    - Existing canonical paths are never rewritten (skip)
    - Writes go through a temporary sibling and an atomic rename
    - Dry runs take the same decisions and record the same actions
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

from rohdb.assets.context import BuildContext
from rohdb.assets.raster import (
    ImageProber,
    PillowImageProber,
    Rasterizer,
    RsvgRasterizer,
)
from rohdb.errors import AssetConstraintError, AssetIOError

if TYPE_CHECKING:
    from rohdb.config import RohDBConfig

logger = logging.getLogger(__name__)

_HASH_CHUNK_SIZE = 1 << 16


class AssetKind(str, Enum):
    """How a source asset is checked before it is stored."""

    IMAGE = "image"  # must be a 1024x1024 PNG
    VECTOR = "vector"  # no constraint


def compute_file_hash(path: Path) -> str:
    """SHA-256 hex digest of a file's bytes."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(_HASH_CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


def asset_reference(digest: str, ext: str) -> str:
    """Canonical reference of an original asset."""
    return f"assets/{digest[0:2]}/{digest[2:4]}/{digest}{ext}"


def derived_reference(digest: str, version: str, width: int, height: int, ext: str = ".png") -> str:
    """Canonical reference of a raster derived from the asset with this digest."""
    return f"assets/{digest[0:2]}/{digest[2:4]}/{digest}.{version}.{width}x{height}{ext}"


def _temporary_sibling(target: Path) -> Path:
    return target.with_name(f".{target.name}.{uuid4().hex}.tmp")


def _ensure_parent(target: Path) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise AssetIOError(f"Cannot create directory {target.parent}: {e}") from e


def _copy_atomic(source: Path, target: Path) -> None:
    """Copy source to target via a temporary sibling and rename."""
    _ensure_parent(target)
    tmp = _temporary_sibling(target)
    try:
        shutil.copyfile(source, tmp)
        os.replace(tmp, target)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise AssetIOError(f"Cannot copy {source} to {target}: {e}") from e


class AssetStore:
    """
    Content-addressed asset store rooted at the dist directory.

    Usage:
        store = AssetStore(Path("dist"))
        context = BuildContext()
        ref = await store.store_original(Path("logo.png"), AssetKind.IMAGE, context)
        png = await store.derive_raster(Path("line_art.svg"), 96, 64, context)

    Args:
        root: Directory the returned references are relative to
        rasterizer: SVG -> PNG collaborator (default: rsvg-convert)
        prober: Image metadata collaborator (default: Pillow)
        raster_version: Transform version tag for derived rasters
        image_size: Required width and height of IMAGE assets
        concurrency: Max concurrent blocking file/subprocess operations
    """

    def __init__(
        self,
        root: Path | str,
        *,
        rasterizer: Rasterizer | None = None,
        prober: ImageProber | None = None,
        raster_version: str = "v1",
        image_size: int = 1024,
        concurrency: int = 8,
    ) -> None:
        self.root = Path(root)
        self.rasterizer = rasterizer or RsvgRasterizer()
        self.prober = prober or PillowImageProber()
        self.raster_version = raster_version
        self.image_size = image_size
        self._semaphore = asyncio.Semaphore(concurrency)

    @classmethod
    def from_config(cls, config: "RohDBConfig", **kwargs) -> "AssetStore":
        """Build a store for config.dist_dir; kwargs override collaborators."""
        kwargs.setdefault("rasterizer", RsvgRasterizer(config.rasterizer_command))
        return cls(
            config.dist_dir,
            raster_version=config.raster_version,
            image_size=config.image_size,
            concurrency=config.asset_concurrency,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def file_hash(self, path: Path | str, context: BuildContext) -> str:
        """SHA-256 of a source file, computed once per build."""
        path = Path(path)
        return await context.run_once(("hash", str(path)), lambda: self._hash(path))

    async def store_original(
        self,
        path: Path | str,
        kind: AssetKind,
        context: BuildContext,
    ) -> str:
        """
        Store a source asset under its content hash.

        Args:
            path: Source file
            kind: IMAGE (checked to be a square PNG of image_size) or VECTOR
            context: Build context (memo table, dry-run flag, action log)

        Returns:
            Canonical reference "assets/<h0h1>/<h2h3>/<hash><ext>"

        Raises:
            AssetConstraintError: IMAGE is not a PNG of the required size
            AssetIOError: Source cannot be read or target cannot be written
        """
        path = Path(path)
        return await context.run_once(
            ("original", str(path), AssetKind(kind)),
            lambda: self._store_original(path, AssetKind(kind), context),
        )

    async def derive_raster(
        self,
        vector_path: Path | str,
        width: int,
        height: int,
        context: BuildContext,
    ) -> str:
        """
        Render a vector asset to PNG at width x height.

        Returns:
            Canonical reference "assets/<h0h1>/<h2h3>/<hash>.<version>.<W>x<H>.png"

        Raises:
            SubprocessError: The rasterizer failed
            AssetIOError: Source cannot be read or target cannot be written
        """
        vector_path = Path(vector_path)
        digest = await self.file_hash(vector_path, context)
        reference = derived_reference(digest, self.raster_version, width, height)
        return await context.run_once(
            ("derived", reference),
            lambda: self._derive(vector_path, reference, width, height, context),
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _hash(self, path: Path) -> str:
        async with self._semaphore:
            try:
                return await asyncio.to_thread(compute_file_hash, path)
            except OSError as e:
                raise AssetIOError(f"Cannot read asset {path}: {e}") from e

    async def _check_image(self, path: Path) -> None:
        async with self._semaphore:
            info = await asyncio.to_thread(self.prober.probe, path)
        if info.format != "PNG":
            raise AssetConstraintError(f"Image {path} is not a PNG file.")
        if info.width != self.image_size or info.height != self.image_size:
            raise AssetConstraintError(
                f"Image {path} must be {self.image_size}x{self.image_size} pixels "
                f"(got {info.width}x{info.height})."
            )

    async def _store_original(self, path: Path, kind: AssetKind, context: BuildContext) -> str:
        digest = await self.file_hash(path, context)
        if kind is AssetKind.IMAGE:
            await self._check_image(path)

        reference = asset_reference(digest, path.suffix)
        target = self.root / reference

        async with context.lock_for(reference):
            if reference in context.planned or await asyncio.to_thread(target.exists):
                logger.info(f"SKIPPED {path} (already exists at {target})")
                context.record_action("skip", path, reference)
                return reference

            if context.dry_run:
                logger.info(f"COPYING Would copy {path} to {target}")
            else:
                logger.info(f"COPYING {path} => {target}")
                async with self._semaphore:
                    await asyncio.to_thread(_copy_atomic, path, target)
            context.planned.add(reference)
            context.record_action("copy", path, reference)

        return reference

    async def _derive(
        self,
        vector_path: Path,
        reference: str,
        width: int,
        height: int,
        context: BuildContext,
    ) -> str:
        target = self.root / reference

        async with context.lock_for(reference):
            if reference in context.planned or await asyncio.to_thread(target.exists):
                logger.info(f"SKIPPED PNG for SVG {vector_path} (already exists at {target})")
                context.record_action("skip", vector_path, reference)
                return reference

            logger.info(f"GENERATING {vector_path} => {target}")
            if not context.dry_run:
                await asyncio.to_thread(_ensure_parent, target)
                tmp = _temporary_sibling(target)
                try:
                    async with self._semaphore:
                        await self.rasterizer.rasterize(vector_path, tmp, width, height)
                    await asyncio.to_thread(os.replace, tmp, target)
                except OSError as e:
                    raise AssetIOError(f"Cannot write derived raster {target}: {e}") from e
                finally:
                    tmp.unlink(missing_ok=True)
            context.planned.add(reference)
            context.record_action("generate", vector_path, reference)

        return reference
