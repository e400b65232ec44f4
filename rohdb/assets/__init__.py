"""
Asset Store

Content-addressed storage for logos, photos and line art.

Modules:
    store: AssetStore, hashing and canonical reference helpers
    context: BuildContext (per-run memo table, action log, records)
    raster: Rasterizer / ImageProber / PdfRenderer collaborators

Dedup:
    - Originals are keyed by SHA-256 of their bytes
    - Derived rasters are keyed by source hash + version + size
    - Concurrent requests for the same key share one task
"""

from rohdb.assets.context import BuildContext
from rohdb.assets.raster import (
    ImageInfo,
    ImageProber,
    MagickPdfRenderer,
    PdfRenderer,
    PillowImageProber,
    Rasterizer,
    RsvgRasterizer,
)
from rohdb.assets.store import (
    AssetKind,
    AssetStore,
    asset_reference,
    compute_file_hash,
    derived_reference,
)

__all__ = [
    "AssetStore",
    "AssetKind",
    "BuildContext",
    "ImageInfo",
    "ImageProber",
    "PdfRenderer",
    "MagickPdfRenderer",
    "PillowImageProber",
    "Rasterizer",
    "RsvgRasterizer",
    "asset_reference",
    "compute_file_hash",
    "derived_reference",
]
