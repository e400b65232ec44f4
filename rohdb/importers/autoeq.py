"""
AutoEQ Importer

Converts an AutoEQ "results" directory into catalog records. Each
"<Product> ParametricEQ.txt" file becomes one EQ preset; its vendor and
product are derived from the file name via the vendor/product splitter.

Supported layouts (relative to the results directory):

    <measurer>/<type>/<product dir>/<Product> ParametricEQ.txt
    <measurer>/<product dir> <type>/<Product> ParametricEQ.txt

Written records:

    vendors/<vendor>/info.json                              (only if absent)
    vendors/<vendor>/products/<product>/info.json
    vendors/<vendor>/products/<product>/eq/autoeq_<measurer>/info.json
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from rohdb.classification.splitter import VendorProductSplitter
from rohdb.errors import ClassificationError, PathShapeError
from rohdb.types.records import (
    EQBand,
    EQInfo,
    EQParameters,
    ProductInfo,
    VendorInfo,
    to_record,
)
from rohdb.types.results import ImportResult
from rohdb.utils.files import write_json
from rohdb.utils.text import generate_slug

logger = logging.getLogger(__name__)

FILE_SUFFIX = " ParametricEQ.txt"

TYPE_TO_SUBTYPE = {
    "in-ear": "in_ear",
    "in_ear": "in_ear",
    "over-ear": "over_the_ear",
    "over_the_ear": "over_the_ear",
    "on-ear": "on_ear",
    "on_ear": "on_ear",
    "earbud": "earbuds",
    "earbuds": "earbuds",
}

FILTER_TYPES = {
    "LSC": "low_shelf",
    "HSC": "high_shelf",
    "PK": "peak_dip",
}

_LAYOUT_TYPES = ("in-ear", "over-ear", "on-ear", "earbud", "earbuds")

_PREAMP = re.compile(r"Preamp:\s*([-\d.]+)\s*dB", re.IGNORECASE)
_FILTER = re.compile(
    r"Filter\s+\d+:\s+ON\s+(\w+)\s+Fc\s+(\d+)\s+Hz\s+Gain\s+([-\d.]+)\s+dB(?:\s+Q\s+([-\d.]+))?",
    re.IGNORECASE,
)
_TYPE_SUFFIX = re.compile(r"(.+?)\s+(in-ear|over-ear|on-ear|earbud|earbuds)$", re.IGNORECASE)


def parse_parametric_eq(content: str) -> EQParameters:
    """
    Parse the text of a ParametricEQ.txt file.

    Lines that are neither a preamp nor a recognizable filter line are
    ignored. Unknown filter codes are treated as peak/dip filters.
    """
    preamp = 0.0
    bands: list[EQBand] = []

    for line in (raw.strip() for raw in content.splitlines()):
        if not line:
            continue
        if line.startswith("Preamp:"):
            if match := _PREAMP.search(line):
                preamp = float(match.group(1))
        elif line.startswith("Filter"):
            match = _FILTER.search(line)
            if match is None:
                continue
            code, frequency, gain, q = match.groups()
            bands.append(
                EQBand(
                    type=FILTER_TYPES.get(code.upper(), "peak_dip"),
                    frequency=float(frequency),
                    gain_db=float(gain),
                    q=float(q) if q else None,
                )
            )

    return EQParameters(gain_db=preamp, bands=bands)


def map_type_to_subtype(autoeq_type: str) -> str:
    """Map an AutoEQ form-factor name to a product subtype."""
    try:
        return TYPE_TO_SUBTYPE[autoeq_type.lower()]
    except KeyError:
        raise ValueError(f"Unknown type: {autoeq_type}") from None


@dataclass
class AutoEQEntry:
    """A ParametricEQ.txt file located in a supported layout."""

    path: Path
    measurer: str
    autoeq_type: str
    product_dir: str

    @property
    def raw_name(self) -> str:
        """Product name as written in the file name."""
        return self.path.name.removesuffix(FILE_SUFFIX)


def resolve_entry(path: Path, root: Path) -> AutoEQEntry:
    """
    Locate measurer, type and product directory for a results file.

    Raises:
        PathShapeError: The path matches neither supported layout
    """
    parts = path.relative_to(root).parts
    if len(parts) < 3:
        raise PathShapeError(f"Insufficient path depth: {path}")

    measurer = parts[0]
    if parts[1].lower() in _LAYOUT_TYPES:
        if len(parts) < 4:
            raise PathShapeError(f"Missing product directory: {path}")
        return AutoEQEntry(path, measurer, parts[1].lower(), parts[2])

    if match := _TYPE_SUFFIX.match(parts[1]):
        return AutoEQEntry(path, measurer, match.group(2).lower(), match.group(1))

    raise PathShapeError(f"Unable to determine type from path: {path}")


def iter_parametric_eq_files(root: Path) -> list[Path]:
    """All '* ParametricEQ.txt' files under root, in sorted walk order."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            if filename.endswith(FILE_SUFFIX):
                found.append(Path(dirpath) / filename)
    return found


class AutoEQImporter:
    """
    Imports an AutoEQ results tree into a catalog tree.

    Usage:
        importer = AutoEQImporter(VendorProductSplitter(OpenAILLMProvider()))
        result = await importer.import_tree("../AutoEq/results", "./incoming")
    """

    def __init__(self, splitter: VendorProductSplitter) -> None:
        self.splitter = splitter

    async def import_tree(self, source_dir: Path | str, target_dir: Path | str) -> ImportResult:
        """
        Import every supported ParametricEQ.txt under source_dir.

        Files in unsupported layouts, with unknown types, or whose names
        cannot be split are skipped and listed in the result.
        """
        source = Path(source_dir)
        target = Path(target_dir)
        if not source.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {source}")

        logger.info(f"Starting import from {source} to {target}")
        result = ImportResult()

        for path in iter_parametric_eq_files(source):
            try:
                entry = resolve_entry(path, source)
            except PathShapeError as e:
                logger.debug(f"Skipping {path}: {e}")
                result.skipped.append(f"{path}: {e}")
                continue

            try:
                await self._import_entry(entry, target)
            except (ClassificationError, ValueError, OSError) as e:
                logger.warning(f"Skipping {path}: {e}")
                result.skipped.append(f"{path}: {e}")
                continue

            result.eqs_written += 1

        logger.info(f"Import complete: {result.eqs_written} EQs written, {len(result.skipped)} skipped")
        return result

    async def _import_entry(self, entry: AutoEQEntry, target: Path) -> None:
        logger.info(f"Processing EQ file: {entry.path}")
        subtype = map_type_to_subtype(entry.autoeq_type)
        parameters = parse_parametric_eq(entry.path.read_text(encoding="utf-8"))

        split = await self.splitter.split(entry.raw_name)
        vendor_slug = generate_slug(split.vendor_name)
        product_slug = generate_slug(split.product_name)
        eq_slug = f"autoeq_{generate_slug(entry.measurer)}"
        if not vendor_slug or not product_slug:
            raise ValueError(f"Empty slug for {split.vendor_name!r} / {split.product_name!r}")

        vendor_dir = target / "vendors" / vendor_slug
        product_dir = vendor_dir / "products" / product_slug
        eq_dir = product_dir / "eq" / eq_slug
        logger.debug(f"Vendor {split.vendor_name!r} -> {vendor_slug}, product {split.product_name!r} -> {product_slug}")

        eq = EQInfo(author="AutoEQ", details=f"Measured by {entry.measurer}", parameters=parameters)
        write_json(eq_dir / "info.json", to_record(eq))

        product = ProductInfo(name=split.product_name, subtype=subtype)
        write_json(product_dir / "info.json", to_record(product))

        vendor_info = vendor_dir / "info.json"
        if vendor_info.exists():
            logger.debug(f"Vendor info already exists at {vendor_info}")
        else:
            write_json(vendor_info, to_record(VendorInfo(name=split.vendor_name)))
