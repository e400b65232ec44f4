"""Tests for the oratory1990 PDF importer."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from rohdb.assets.raster import MagickPdfRenderer, PdfRenderer
from rohdb.importers import OratoryImporter, parse_metadata
from rohdb.importers.oratory import ParsedFilename, split_filename
from rohdb.schemas import SchemaValidator
from rohdb.types import ExtractedEQ, RecordKind, VendorProductSplit

EXTRACTED = {
    "gain_db": -5.2,
    "bands": [
        {"type": "low_shelf", "frequency": 105, "gain_db": 4.0, "q": 0.71},
        {"type": "peak_dip", "frequency": 180, "gain_db": -3.1, "q": 0.5},
        {"type": "high_shelf", "frequency": 10000, "gain_db": 2.5, "q": 0.71},
    ],
}


class FakeRenderer(PdfRenderer):
    """Writes a small PNG per call and tracks concurrency."""

    def __init__(self) -> None:
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def render(self, source, target) -> None:
        self.calls.append(source)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0)
        Image.new("RGB", (40, 20), "white").save(target, format="PNG")
        self.active -= 1


def make_splitter():
    """Splitter treating the first word as the vendor."""

    async def split(raw_name):
        vendor, _, product = raw_name.partition(" ")
        return VendorProductSplit(vendor_name=vendor, product_name=product)

    splitter = AsyncMock()
    splitter.split = AsyncMock(side_effect=split)
    return splitter


def make_llm(*results):
    llm = AsyncMock()
    llm.model_name = "gpt-4o"
    if results:
        llm.generate_structured = AsyncMock(side_effect=list(results))
    else:
        llm.generate_structured = AsyncMock(return_value=ExtractedEQ(**EXTRACTED))
    return llm


def write_pdf(directory, name):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(b"%PDF-1.4\n")
    return path


def read_info(directory):
    return json.loads((directory / "info.json").read_text(encoding="utf-8"))


class TestFilenames:
    """Tests for file name parsing."""

    @pytest.mark.parametrize(
        "metadata, expected",
        [
            (None, ("Harman Target", None)),
            ("Harman Target 2018", ("Harman Target", None)),
            ("harman in-ear 2019", ("Harman Target", None)),
            ("oratory1990 target", ("oratory1990 Target", None)),
            ("Diffuse Field Target", ("Diffuse Field Target", None)),
            ("with velour PADS", ("Harman Target", "With Velour Pads")),
        ],
    )
    def test_parse_metadata(self, metadata, expected):
        """Parenthesized notes select the target or become the extra."""
        assert parse_metadata(metadata) == expected

    def test_split_with_metadata(self, tmp_path):
        """The parenthesized tail is separated from the product part."""
        assert split_filename(tmp_path / "Sennheiser HD 600 (Harman Target 2018).pdf") == (
            "Sennheiser HD 600",
            "Harman Target 2018",
        )

    def test_split_without_metadata(self, tmp_path):
        """A name without parentheses is all product."""
        assert split_filename(tmp_path / "Sennheiser HD 600.pdf") == ("Sennheiser HD 600", None)

    def test_eq_slug_and_details(self):
        """The EQ slug carries target and extra; details joins them."""
        parsed = ParsedFilename("Sennheiser", "HD 600", "Harman Target", "With Pads")
        assert parsed.eq_slug == "oratory1990_harman_target_with_pads"
        assert parsed.details == "Harman Target • With Pads"

        plain = ParsedFilename("Sennheiser", "HD 600", "oratory1990 Target")
        assert plain.eq_slug == "oratory1990_oratory1990_target"
        assert plain.details == "oratory1990 Target"


class TestImportTree:
    """Tests for OratoryImporter.import_tree."""

    @pytest.mark.asyncio
    async def test_writes_records(self, tmp_path):
        """Vendor, product (unknown subtype) and EQ are written from one PDF."""
        write_pdf(tmp_path / "pdfs", "Sennheiser HD 600 (with pads).pdf")
        target = tmp_path / "incoming"
        llm = make_llm()
        renderer = FakeRenderer()

        result = await OratoryImporter(make_splitter(), llm, renderer).import_tree(
            tmp_path / "pdfs", target
        )

        assert result.eqs_written == 1
        assert result.skipped == []

        vendor = target / "vendors" / "sennheiser"
        product = vendor / "products" / "hd_600"
        eq = product / "eq" / "oratory1990_harman_target_with_pads"
        assert read_info(vendor)["name"] == "Sennheiser"
        assert read_info(product)["subtype"] == "unknown"
        assert read_info(product)["type"] == "headphones"

        eq_info = read_info(eq)
        assert eq_info["author"] == "oratory1990"
        assert eq_info["details"] == "Harman Target • With Pads"
        assert eq_info["parameters"] == EXTRACTED

        validator = SchemaValidator.default()
        assert validator.is_valid(RecordKind.VENDOR, read_info(vendor))
        assert validator.is_valid(RecordKind.EQ, eq_info)

    @pytest.mark.asyncio
    async def test_vision_request(self, tmp_path):
        """The rendered PNG goes to the model with the extraction prompt."""
        write_pdf(tmp_path / "pdfs", "Sennheiser HD 600.pdf")
        llm = make_llm()

        await OratoryImporter(make_splitter(), llm, FakeRenderer()).import_tree(
            tmp_path / "pdfs", tmp_path / "incoming"
        )

        call = llm.generate_structured.call_args
        assert call.args[1] is ExtractedEQ
        assert call.kwargs["system"] == "Extract parametric EQ settings from the image"
        assert call.kwargs["temperature"] == 0.1
        [image] = call.kwargs["images"]
        assert image.startswith(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_existing_eq_skipped(self, tmp_path):
        """An EQ directory that already exists is neither rendered nor extracted."""
        write_pdf(tmp_path / "pdfs", "Sennheiser HD 600.pdf")
        target = tmp_path / "incoming"
        eq = target / "vendors/sennheiser/products/hd_600/eq/oratory1990_harman_target"
        eq.mkdir(parents=True)
        llm = make_llm()
        renderer = FakeRenderer()

        result = await OratoryImporter(make_splitter(), llm, renderer).import_tree(
            tmp_path / "pdfs", target
        )

        assert result.eqs_written == 0
        assert len(result.skipped) == 1
        assert renderer.calls == []
        llm.generate_structured.assert_not_awaited()
        assert not (eq / "info.json").exists()

    @pytest.mark.asyncio
    async def test_existing_vendor_and_product_kept(self, tmp_path, write_info):
        """Vendor and product records are only written when absent."""
        write_pdf(tmp_path / "pdfs", "Sennheiser HD 600 (oratory1990 target).pdf")
        target = tmp_path / "incoming"
        vendor = write_info(target / "vendors" / "sennheiser", {"name": "Sennheiser", "blurb": "Kept."})
        product = write_info(
            vendor / "products" / "hd_600",
            {"name": "HD 600", "blurb": "", "type": "headphones", "subtype": "over_the_ear"},
        )

        await OratoryImporter(make_splitter(), make_llm(), FakeRenderer()).import_tree(
            tmp_path / "pdfs", target
        )

        assert read_info(vendor)["blurb"] == "Kept."
        assert read_info(product)["subtype"] == "over_the_ear"
        assert (product / "eq" / "oratory1990_oratory1990_target" / "info.json").exists()

    @pytest.mark.asyncio
    async def test_failed_extraction_skipped(self, tmp_path):
        """A model failure skips that PDF only and writes nothing for it."""
        pdfs = tmp_path / "pdfs"
        write_pdf(pdfs, "Moondrop Aria.pdf")
        write_pdf(pdfs, "Sennheiser HD 600.pdf")
        target = tmp_path / "incoming"
        llm = make_llm(RuntimeError("rate limited"), ExtractedEQ(**EXTRACTED))

        importer = OratoryImporter(make_splitter(), llm, FakeRenderer(), chunk_size=1)

        result = await importer.import_tree(pdfs, target)

        assert result.eqs_written == 1
        assert len(result.skipped) == 1
        assert "Moondrop Aria.pdf" in result.skipped[0]
        assert "rate limited" in result.skipped[0]
        assert not (target / "vendors" / "moondrop").exists()
        assert (target / "vendors" / "sennheiser" / "products" / "hd_600").is_dir()

    @pytest.mark.asyncio
    async def test_no_bands_skipped(self, tmp_path):
        """An empty band list is not written as an EQ."""
        write_pdf(tmp_path / "pdfs", "Sennheiser HD 600.pdf")
        llm = make_llm(ExtractedEQ(gain_db=0.0, bands=[]))

        result = await OratoryImporter(make_splitter(), llm, FakeRenderer()).import_tree(
            tmp_path / "pdfs", tmp_path / "incoming"
        )

        assert result.eqs_written == 0
        assert "No EQ bands" in result.skipped[0]

    @pytest.mark.asyncio
    async def test_processed_in_chunks(self, tmp_path):
        """No more than chunk_size PDFs are in flight at once."""
        pdfs = tmp_path / "pdfs"
        for i in range(10):
            write_pdf(pdfs, f"Vendor{i} Model {i}.pdf")
        renderer = FakeRenderer()

        result = await OratoryImporter(
            make_splitter(), make_llm(), renderer, chunk_size=4
        ).import_tree(pdfs, tmp_path / "incoming")

        assert result.eqs_written == 10
        assert len(renderer.calls) == 10
        assert 1 < renderer.max_active <= 4

    @pytest.mark.asyncio
    async def test_missing_source(self, tmp_path):
        """A missing source directory is an error."""
        importer = OratoryImporter(make_splitter(), make_llm(), FakeRenderer())
        with pytest.raises(NotADirectoryError):
            await importer.import_tree(tmp_path / "nope", tmp_path / "out")

    def test_chunk_size_positive(self):
        """A batch holds at least one PDF."""
        with pytest.raises(ValueError):
            OratoryImporter(make_splitter(), make_llm(), FakeRenderer(), chunk_size=0)


class TestMagickPdfRenderer:
    """Tests for the ImageMagick command line."""

    def test_command(self, tmp_path):
        """Rendered at 300 dpi on white, cropped to the table band and trimmed."""
        cmd = MagickPdfRenderer().build_command(tmp_path / "a.pdf", tmp_path / "a.png")

        assert cmd[0] == "convert"
        assert cmd[cmd.index("-density") + 1] == "300"
        assert cmd[cmd.index("-crop") + 1] == "60%x20%+0+2400"
        assert cmd.index(str(tmp_path / "a.pdf")) < cmd.index("-crop")
        assert cmd[-2:] == ["-trim", str(tmp_path / "a.png")]
