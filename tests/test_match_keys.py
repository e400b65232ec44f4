"""Tests for match-key normalization."""

import pytest

from rohdb.tree import node_keys, normalize_for_comparison
from rohdb.types import RecordKind


class TestNormalizeForComparison:
    """Tests for normalize_for_comparison."""

    @pytest.mark.parametrize(
        "text",
        ["B&W", "bw", "Bowers & Wilkins", "BOWERS&WILKINS", "LZ", "lz_hifi"],
    )
    def test_bowers_wilkins_aliases(self, text):
        """Every known B&W spelling collapses to one key."""
        assert normalize_for_comparison(text) == "bowerswilkins"

    def test_drop_alias(self):
        """Drop is known as Massdrop."""
        assert normalize_for_comparison("Drop") == "massdrop"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("moondrop_audio", "moondrop"),
            ("sonic_research", "sonic"),
            ("tin_acoustics", "tin"),
            ("tin_hifi_t2", "tin_t2"),
            ("campfire_audio_design", "campfire"),
        ],
    )
    def test_suffixes(self, text, expected):
        """Suffix rules apply once each, in order."""
        assert normalize_for_comparison(text) == expected

    def test_punctuation_and_whitespace(self):
        """Punctuation and whitespace are dropped; underscores kept."""
        assert normalize_for_comparison("HD 800 S!") == "hd800s"
        assert normalize_for_comparison("hd_800_s") == "hd_800_s"


class TestNodeKeys:
    """Tests for node_keys."""

    def test_vendor_keys(self):
        """Vendors are keyed by name and slug."""
        keys = node_keys(RecordKind.VENDOR, "bowers_wilkins", {"name": "Bowers & Wilkins"})
        assert keys == {"bowers_wilkins", "bowerswilkins"}

    def test_eq_keys_slug_only(self):
        """EQs have no name key."""
        keys = node_keys(RecordKind.EQ, "autoeq_crinacle", {"name": "Ignored"})
        assert keys == {"autoeq_crinacle"}
