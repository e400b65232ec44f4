"""Tests for the merge engine."""

import json
import shutil

import pytest

from rohdb.merge import MergeEngine, StaticSubtypeResolver, correct_q_signs, merge_directories
from rohdb.schemas import SchemaValidator
from rohdb.tree import CatalogTree, load_tree
from rohdb.types import RecordKind


def read_info(directory):
    return json.loads((directory / "info.json").read_text(encoding="utf-8"))


def snapshot(root):
    """Relative path -> bytes for every file under root."""
    return {
        str(path.relative_to(root)): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def target(tmp_path, write_info, sample_records):
    """Target with Bowers & Wilkins (no PX7) and Sennheiser HD 600 + one EQ."""
    root = tmp_path / "target"
    write_info(root / "vendors" / "bowers_wilkins", {"name": "Bowers & Wilkins", "blurb": ""})
    sennheiser = write_info(root / "vendors" / "sennheiser", sample_records["vendor"])
    hd600 = write_info(sennheiser / "products" / "hd_600", sample_records["product"])
    write_info(hd600 / "eq" / "autoeq_oratory1990", sample_records["eq"])
    return root


@pytest.fixture
def source(tmp_path, write_info, sample_records):
    """Source with B&W PX7 (unknown subtype) and one EQ."""
    root = tmp_path / "source"
    bw = write_info(root / "vendors" / "bw", {"name": "B&W", "blurb": ""})
    px7 = write_info(
        bw / "products" / "px7",
        {"name": "PX7", "blurb": "", "type": "headphones", "subtype": "unknown"},
    )
    write_info(px7 / "eq" / "autoeq_crinacle", sample_records["eq"])
    return root


def make_engine(resolver=None) -> MergeEngine:
    return MergeEngine(SchemaValidator.default(), resolver or StaticSubtypeResolver("over_the_ear"))


class TestEndToEnd:
    """Tests for the alias-matched vendor scenario."""

    def test_bw_px7(self, source, target):
        """The vendor matches by alias; product and EQ are created under it."""
        resolver = StaticSubtypeResolver("over_the_ear")

        report = merge_directories(source, target, resolver=resolver)

        assert report.vendors_matched == 1
        assert report.vendors_created == 0
        assert report.products_created == 1
        assert report.eqs_created == 1
        assert resolver.calls == [("Bowers & Wilkins", "PX7")]
        assert not (target / "vendors" / "bw").exists()

        px7 = target / "vendors" / "bowers_wilkins" / "products" / "px7"
        assert read_info(px7)["subtype"] == "over_the_ear"
        assert read_info(px7 / "eq" / "autoeq_crinacle")["author"] == "AutoEQ"

    def test_resolver_not_called_for_known_subtype(self, source, target):
        """Only unknown subtypes trigger resolution."""
        px7 = source / "vendors" / "bw" / "products" / "px7"
        info = read_info(px7)
        info["subtype"] = "on_ear"
        (px7 / "info.json").write_text(json.dumps(info))
        resolver = StaticSubtypeResolver()

        merge_directories(source, target, resolver=resolver)

        assert resolver.calls == []
        assert read_info(target / "vendors/bowers_wilkins/products/px7")["subtype"] == "on_ear"

    def test_invalid_resolver_answer(self, source, target):
        """Resolvers must answer with a real subtype."""
        with pytest.raises(ValueError, match="Subtype resolver returned"):
            merge_directories(source, target, resolver=StaticSubtypeResolver("unknown"))


class TestIdempotence:
    """Re-running merges changes nothing."""

    def test_self_merge(self, target, tmp_path):
        """Merging a tree into a copy of itself writes nothing."""
        copy = tmp_path / "copy"
        shutil.copytree(target, copy)
        before = snapshot(copy)

        report = merge_directories(target, copy, resolver=StaticSubtypeResolver())

        assert report.entities_created == 0
        assert report.files_written == 0
        assert report.eqs_unchanged == 1
        assert snapshot(copy) == before

    def test_repeat_merge(self, source, target):
        """A second identical merge creates nothing."""
        merge_directories(source, target, resolver=StaticSubtypeResolver("in_ear"))
        before = snapshot(target)

        report = merge_directories(source, target, resolver=StaticSubtypeResolver("in_ear"))

        assert report.entities_created == 0
        assert report.files_written == 0
        assert snapshot(target) == before


class TestEQMerge:
    """Tests for EQ creation and overwrite."""

    def test_negative_q_corrected(self, source, target):
        """Negative Q values are stored as their absolute value."""
        eq_dir = source / "vendors/bw/products/px7/eq/autoeq_crinacle"
        info = read_info(eq_dir)
        info["parameters"]["bands"][0]["q"] = -3
        (eq_dir / "info.json").write_text(json.dumps(info))

        merge_directories(source, target, resolver=StaticSubtypeResolver("over_the_ear"))

        written = read_info(target / "vendors/bowers_wilkins/products/px7/eq/autoeq_crinacle")
        assert written["parameters"]["bands"][0]["q"] == 3
        assert read_info(eq_dir)["parameters"]["bands"][0]["q"] == -3

    def test_matched_eq_overwritten(self, target, tmp_path, write_info, sample_records):
        """A changed EQ replaces the matched target EQ."""
        source = tmp_path / "incoming"
        vendor = write_info(source / "vendors" / "sennheiser", sample_records["vendor"])
        product = write_info(vendor / "products" / "hd600", {**sample_records["product"], "name": "HD600"})
        eq = {**sample_records["eq"], "details": "Re-measured"}
        write_info(product / "eq" / "autoeq_oratory1990", eq)

        report = merge_directories(source, target, resolver=StaticSubtypeResolver())

        assert report.products_matched == 1
        assert report.eqs_updated == 1
        written = read_info(target / "vendors/sennheiser/products/hd_600/eq/autoeq_oratory1990")
        assert written["details"] == "Re-measured"

    def test_invalid_eq_rejected(self, source, target):
        """An EQ failing validation is skipped and reported; siblings proceed."""
        eq_dir = source / "vendors/bw/products/px7/eq/autoeq_crinacle"
        info = read_info(eq_dir)
        del info["author"]
        (eq_dir / "info.json").write_text(json.dumps(info))

        report = merge_directories(source, target, resolver=StaticSubtypeResolver("over_the_ear"))

        assert report.products_created == 1
        assert report.eqs_created == 0
        assert len(report.rejected) == 1
        assert not (target / "vendors/bowers_wilkins/products/px7/eq").exists()

    def test_correct_q_signs_copies(self):
        """correct_q_signs never mutates its input."""
        info = {"parameters": {"gain_db": 0, "bands": [{"type": "peak_dip", "frequency": 100, "q": -0.5}]}}
        corrected = correct_q_signs(info)
        assert corrected["parameters"]["bands"][0]["q"] == 0.5
        assert info["parameters"]["bands"][0]["q"] == -0.5


class TestVendorCreation:
    """Tests for new vendors."""

    def test_new_vendor_with_logo(self, target, tmp_path, write_info, make_png):
        """A new vendor is created together with its referenced logo."""
        source = tmp_path / "incoming"
        vendor = source / "vendors" / "moondrop"
        make_png(vendor / "logo.png")
        write_info(vendor, {"name": "Moondrop", "blurb": "", "logo": "logo.png"})

        report = merge_directories(source, target, resolver=StaticSubtypeResolver())

        created = target / "vendors" / "moondrop"
        assert report.vendors_created == 1
        assert read_info(created)["logo"] == "logo.png"
        assert (created / "logo.png").read_bytes() == (vendor / "logo.png").read_bytes()

    def test_invalid_vendor_skips_subtree(self, target, tmp_path, write_info, sample_records):
        """A vendor failing validation is not created, nor are its products."""
        source = tmp_path / "incoming"
        vendor = write_info(source / "vendors" / "moondrop", {"name": "Moondrop"})
        write_info(vendor / "products" / "aria", {**sample_records["product"], "name": "Aria"})

        report = merge_directories(source, target, resolver=StaticSubtypeResolver())

        assert report.vendors_created == 0
        assert report.products_created == 0
        assert len(report.rejected) == 1
        assert not (target / "vendors" / "moondrop").exists()

    def test_created_vendor_matches_later_source_vendor(self, target, tmp_path, write_info):
        """Vendors created earlier in a merge are visible to later source vendors."""
        source = tmp_path / "incoming"
        write_info(source / "vendors" / "lz", {"name": "LZ", "blurb": ""})
        write_info(source / "vendors" / "moondrop", {"name": "Moondrop", "blurb": ""})
        write_info(source / "vendors" / "moondrop_audio", {"name": "Moondrop Audio", "blurb": ""})

        report = merge_directories(source, target, resolver=StaticSubtypeResolver())

        assert report.vendors_created == 1
        assert report.vendors_matched == 2
        tree = load_tree(target)
        assert sorted(v.slug for v in tree.vendors) == ["bowers_wilkins", "moondrop", "sennheiser"]


class TestMalformedEQ:
    """EQ payloads that are valid JSON but not objects."""

    def test_merge_completes(self, tmp_path, target, write_info, sample_records):
        """A list-valued EQ is omitted and its siblings still merge."""
        source = tmp_path / "incoming"
        vendor = write_info(source / "vendors" / "sennheiser", sample_records["vendor"])
        product = write_info(vendor / "products" / "hd600", {**sample_records["product"], "name": "HD600"})
        broken = product / "eq" / "broken"
        broken.mkdir(parents=True)
        (broken / "info.json").write_text("[1, 2]")
        write_info(product / "eq" / "autoeq_crinacle", sample_records["eq"])

        report = merge_directories(source, target, resolver=StaticSubtypeResolver("in_ear"))

        eq_root = target / "vendors/sennheiser/products/hd_600/eq"
        assert report.eqs_created == 1
        assert (eq_root / "autoeq_crinacle" / "info.json").exists()
        assert not (eq_root / "broken").exists()

    def test_non_object_node_rejected(self, tmp_path, target):
        """A non-object EQ placed in a tree is reported, not raised."""
        source = CatalogTree(tmp_path / "incoming")
        vendor = source.add(
            RecordKind.VENDOR, "sennheiser", {"name": "Sennheiser", "blurb": ""}, tmp_path / "v"
        )
        product = source.add(RecordKind.PRODUCT, "hd_600", {"name": "HD 600"}, tmp_path / "p", parent=vendor)
        source.add(RecordKind.EQ, "broken", [1, 2], tmp_path / "e", parent=product)

        report = make_engine().merge(source, load_tree(target))

        assert report.eqs_created == 0
        assert len(report.rejected) == 1
        assert "not a JSON object" in report.rejected[0]
