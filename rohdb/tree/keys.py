"""
Match Keys

Normalized identity keys used to recognize the same vendor/product/EQ across
two catalog trees. Matching is exact set intersection on these keys; there is
no fuzzy scoring.
"""

from __future__ import annotations

import re

from rohdb.types.results import RecordKind

# Applied in order; only the first occurrence of "_hifi" is removed and it
# does not have to be a suffix.
_SUFFIX_PATTERNS = (
    re.compile(r"_research$"),
    re.compile(r"_acoustics$"),
    re.compile(r"_audio$"),
    re.compile(r"_hifi"),
    re.compile(r"_audio_design$"),
)

# Brand spellings that collapse to one key. "lz" -> "bowerswilkins" is
# long-standing behavior that existing trees depend on; keep it.
ALIASES: dict[str, str] = {
    "bw": "bowerswilkins",
    "bowerswilkins": "bowerswilkins",
    "lz": "bowerswilkins",
    "lzhifi": "bowerswilkins",
    "drop": "massdrop",
}

_PUNCTUATION = re.compile(r"[^\w\s]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def normalize_for_comparison(text: str) -> str:
    """
    Normalize a name or slug into a match key.

    Examples:
        "B&W" -> "bowerswilkins"
        "Bowers & Wilkins" -> "bowerswilkins"
        "moondrop_audio" -> "moondrop"
    """
    key = text.lower()
    key = _PUNCTUATION.sub("", key)
    key = _WHITESPACE.sub("", key)
    for pattern in _SUFFIX_PATTERNS:
        key = pattern.sub("", key, count=1)
    return ALIASES.get(key, key)


def node_keys(kind: RecordKind, slug: str, info: dict) -> frozenset[str]:
    """
    Match keys of a tree node.

    Vendors and products are keyed by display name and slug; EQs have no
    display name and are keyed by slug only.
    """
    if kind is RecordKind.EQ:
        return frozenset({normalize_for_comparison(slug)})
    keys = {normalize_for_comparison(slug)}
    name = info.get("name")
    if isinstance(name, str):
        keys.add(normalize_for_comparison(name))
    return frozenset(keys)
