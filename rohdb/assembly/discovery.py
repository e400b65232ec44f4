"""
Record Discovery

Walks a database tree and classifies every info.json file by the shape of
its path relative to the root:

    vendors/<v>/info.json                          -> vendor  "<v>"
    vendors/<v>/products/<p>/info.json             -> product "<v>_<p>"
    vendors/<v>/products/<p>/eq/<e>/info.json      -> eq      "<v>_<p>_<e>"

Files in any other position are skipped.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from rohdb.errors import PathShapeError
from rohdb.types.results import RecordKind

logger = logging.getLogger(__name__)

INFO_FILENAME = "info.json"


@dataclass(frozen=True)
class RecordPath:
    """An info.json file whose position identifies a catalog record."""

    kind: RecordKind
    path: Path
    vendor: str
    product: str | None = None
    eq: str | None = None

    @property
    def record_id(self) -> str:
        """vendor, vendor_product, or vendor_product_eq."""
        return "_".join(part for part in (self.vendor, self.product, self.eq) if part)

    @property
    def directory(self) -> Path:
        """Directory that relative asset references in the record resolve against."""
        return self.path.parent


def classify_path(path: Path, root: Path) -> RecordPath:
    """
    Classify an info.json path by its shape relative to root.

    Raises:
        PathShapeError: If the path matches no record layout
    """
    parts = path.relative_to(root).parts

    if len(parts) >= 3 and parts[0] == "vendors" and parts[-1] == INFO_FILENAME:
        if len(parts) == 3:
            return RecordPath(RecordKind.VENDOR, path, vendor=parts[1])
        if len(parts) == 5 and parts[2] == "products":
            return RecordPath(RecordKind.PRODUCT, path, vendor=parts[1], product=parts[3])
        if len(parts) == 7 and parts[2] == "products" and parts[4] == "eq":
            return RecordPath(
                RecordKind.EQ, path, vendor=parts[1], product=parts[3], eq=parts[5]
            )

    raise PathShapeError(f"Unrecognized record path: {'/'.join(parts)}")


def iter_info_files(root: Path) -> Iterator[Path]:
    """Yield info.json files under root, directories and files in sorted order."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            if filename == INFO_FILENAME:
                yield Path(dirpath) / filename


def discover_records(root: Path | str) -> list[RecordPath]:
    """
    Find all catalog records under root in discovery order.

    A vendor record precedes its products, a product precedes its EQs.
    """
    root = Path(root)
    records: list[RecordPath] = []
    for path in iter_info_files(root):
        try:
            records.append(classify_path(path, root))
        except PathShapeError as e:
            logger.debug(f"Skipping {path}: {e}")
    return records
