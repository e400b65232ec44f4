"""
Oratory1990 Importer

Converts a directory of oratory1990 EQ PDFs into catalog records. The page
band holding the filter table is rendered to PNG and read by a vision model;
vendor and product come from the file name via the vendor/product splitter.

File names (stem, before ".pdf"):

    <Product>                      Harman Target
    <Product> (Harman ...)         Harman Target
    <Product> (oratory1990 ...)    oratory1990 Target
    <Product> (<X> Target)         "<X> Target" as written
    <Product> (<note>)             Harman Target, note kept (title-cased) as extra

Written records:

    vendors/<vendor>/info.json                       (only if absent)
    vendors/<vendor>/products/<product>/info.json    (only if absent, subtype "unknown")
    vendors/<vendor>/products/<product>/eq/oratory1990_<target>[_<extra>]/info.json

An existing EQ directory means the PDF was imported before; it is skipped
ahead of any rendering or model call. Products are written with subtype
"unknown" and get a real subtype when the tree is merged.
"""

from __future__ import annotations

import asyncio
import logging
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from rohdb.assets.raster import MagickPdfRenderer, PdfRenderer
from rohdb.classification.splitter import VendorProductSplitter
from rohdb.errors import ExtractionError, RohDBError
from rohdb.providers.base import LLMProvider
from rohdb.types.records import (
    UNKNOWN_SUBTYPE,
    EQBand,
    EQInfo,
    EQParameters,
    ProductInfo,
    VendorInfo,
    to_record,
)
from rohdb.types.results import ExtractedEQ, ImportResult
from rohdb.utils.files import write_json
from rohdb.utils.text import generate_slug, to_title_case

logger = logging.getLogger(__name__)

AUTHOR = "oratory1990"
DEFAULT_TARGET = "Harman Target"
ORATORY_TARGET = "oratory1990 Target"

EXTRACTION_SYSTEM_PROMPT = "Extract parametric EQ settings from the image"
EXTRACTION_TEMPERATURE = 0.1

_FILENAME = re.compile(r"^(.+?)\s*(?:\((.*?)\))?$")


def parse_metadata(metadata: str | None) -> tuple[str, str | None]:
    """
    Map the parenthesized part of a file name to (target, extra).

    Example:
        >>> parse_metadata("Harman Target 2018")
        ('Harman Target', None)
        >>> parse_metadata("with pads")
        ('Harman Target', 'With Pads')
    """
    if not metadata:
        return DEFAULT_TARGET, None

    lower = metadata.lower()
    if "harman" in lower:
        return DEFAULT_TARGET, None
    if "oratory" in lower:
        return ORATORY_TARGET, None
    if "target" in lower:
        return metadata, None
    return DEFAULT_TARGET, to_title_case(metadata)


@dataclass
class ParsedFilename:
    """Vendor, product and EQ naming derived from one PDF file name."""

    vendor: str
    product: str
    target: str
    extra: str | None = None

    @property
    def eq_slug(self) -> str:
        slug = f"{AUTHOR}_{generate_slug(self.target)}"
        if self.extra:
            slug += f"_{generate_slug(self.extra)}"
        return slug

    @property
    def details(self) -> str:
        return f"{self.target} • {self.extra}" if self.extra else self.target


def split_filename(path: Path) -> tuple[str, str | None]:
    """
    Split a PDF file name into the raw product name and its metadata.

    Raises:
        ValueError: The stem is empty
    """
    match = _FILENAME.match(path.stem)
    if match is None:
        raise ValueError(f"Invalid filename format: {path.name}")
    product_part, metadata = match.groups()
    return product_part, metadata


async def parse_filename(path: Path, splitter: VendorProductSplitter) -> ParsedFilename:
    """
    Parse a PDF file name, splitting the product part into vendor and product.

    Raises:
        ValueError: The file name has no product part
        ClassificationError: The splitter gave up
    """
    product_part, metadata = split_filename(path)
    logger.debug(f"Parsing filename {path.name!r} -> product {product_part!r}, metadata {metadata!r}")

    split = await splitter.split(product_part)
    target, extra = parse_metadata(metadata)
    return ParsedFilename(
        vendor=split.vendor_name,
        product=split.product_name,
        target=target,
        extra=extra,
    )


def iter_pdf_files(root: Path) -> list[Path]:
    """All *.pdf files under root, sorted."""
    return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() == ".pdf")


def to_parameters(extracted: ExtractedEQ) -> EQParameters:
    """Convert vision output into record parameters."""
    return EQParameters(
        gain_db=extracted.gain_db,
        bands=[EQBand(**band.model_dump()) for band in extracted.bands],
    )


class OratoryImporter:
    """
    Imports a directory of oratory1990 PDFs into a catalog tree.

    Usage:
        importer = OratoryImporter(
            VendorProductSplitter(OpenAILLMProvider()),
            OpenAILLMProvider(model="gpt-4o", max_tokens=None),
        )
        result = await importer.import_tree("./oratory_pdfs", "./incoming")

    Args:
        splitter: Vendor/product splitter for file names
        llm: Vision-capable provider reading the rendered EQ table
        renderer: PDF -> PNG collaborator (default: ImageMagick convert)
        chunk_size: PDFs processed concurrently per batch
    """

    def __init__(
        self,
        splitter: VendorProductSplitter,
        llm: LLMProvider,
        renderer: PdfRenderer | None = None,
        *,
        chunk_size: int = 8,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.splitter = splitter
        self.llm = llm
        self.renderer = renderer or MagickPdfRenderer()
        self.chunk_size = chunk_size

    async def import_tree(self, source_dir: Path | str, target_dir: Path | str) -> ImportResult:
        """
        Import every PDF under source_dir.

        Files are processed in batches of chunk_size. A file that fails
        (bad name, splitter exhausted, render or extraction error) is logged
        and listed in the result; the rest of the batch carries on.
        """
        source = Path(source_dir)
        target = Path(target_dir)
        if not source.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {source}")

        logger.info(f"Starting PDF processing from {source} to {target}")
        target.mkdir(parents=True, exist_ok=True)

        files = iter_pdf_files(source)
        logger.info(f"Found {len(files)} PDF files to process")
        result = ImportResult()

        for start in range(0, len(files), self.chunk_size):
            chunk = files[start:start + self.chunk_size]
            logger.info(
                f"Processing chunk of {len(chunk)} PDFs "
                f"({start + 1}-{start + len(chunk)} of {len(files)})"
            )
            outcomes = await asyncio.gather(*(self._import_file(path, target) for path in chunk))
            for path, skip_reason in zip(chunk, outcomes):
                if skip_reason is None:
                    result.eqs_written += 1
                else:
                    result.skipped.append(f"{path}: {skip_reason}")

        logger.info(f"Import complete: {result.eqs_written} EQs written, {len(result.skipped)} skipped")
        return result

    async def _import_file(self, path: Path, target: Path) -> str | None:
        """Import one PDF; returns None when written, else why it was skipped."""
        logger.info(f"Processing PDF file: {path}")
        try:
            parsed = await parse_filename(path, self.splitter)

            vendor_slug = generate_slug(parsed.vendor)
            product_slug = generate_slug(parsed.product)
            if not vendor_slug or not product_slug:
                raise ValueError(f"Empty slug for {parsed.vendor!r} / {parsed.product!r}")

            vendor_dir = target / "vendors" / vendor_slug
            product_dir = vendor_dir / "products" / product_slug
            eq_dir = product_dir / "eq" / parsed.eq_slug

            if eq_dir.exists():
                logger.info(f"Skipping {path}, EQ info already exists at {eq_dir}")
                return f"EQ already exists at {eq_dir}"

            logger.debug(f"Parsed {path.name}: {parsed}")
            parameters = await self._extract(path)
            self._write(parsed, vendor_dir, product_dir, eq_dir, parameters)
        except (RohDBError, OSError, ValueError) as e:
            logger.error(f"Error processing {path}: {e}")
            return str(e)

        return None

    async def _extract(self, path: Path) -> EQParameters:
        """Render the EQ table of a PDF and read it with the vision model."""
        with tempfile.TemporaryDirectory(prefix="rohdb-oratory-") as tmp:
            png = Path(tmp) / f"{path.stem}.png"
            await self.renderer.render(path, png)
            image = png.read_bytes()
        logger.debug(f"Converted {path} to PNG ({len(image)} bytes)")

        try:
            extracted = await self.llm.generate_structured(
                "",
                ExtractedEQ,
                system=EXTRACTION_SYSTEM_PROMPT,
                temperature=EXTRACTION_TEMPERATURE,
                images=[image],
            )
        except Exception as e:
            raise ExtractionError(
                f"{self.llm.model_name} could not extract EQ settings from {path}: {e}"
            ) from e

        if not extracted.bands:
            raise ExtractionError(f"No EQ bands found in {path}")
        logger.debug(f"Extracted {len(extracted.bands)} bands from {path}")
        return to_parameters(extracted)

    @staticmethod
    def _write(
        parsed: ParsedFilename,
        vendor_dir: Path,
        product_dir: Path,
        eq_dir: Path,
        parameters: EQParameters,
    ) -> None:
        eq_dir.mkdir(parents=True, exist_ok=True)

        vendor_info = vendor_dir / "info.json"
        if not vendor_info.exists():
            write_json(vendor_info, to_record(VendorInfo(name=parsed.vendor)))
            logger.info(f"Created vendor info at {vendor_info}")

        product_info = product_dir / "info.json"
        if not product_info.exists():
            product = ProductInfo(name=parsed.product, subtype=UNKNOWN_SUBTYPE)
            write_json(product_info, to_record(product))
            logger.info(f"Created product info at {product_info}")

        eq = EQInfo(author=AUTHOR, details=parsed.details, parameters=parameters)
        write_json(eq_dir / "info.json", to_record(eq))
        logger.info(f"Created EQ info at {eq_dir / 'info.json'}")
