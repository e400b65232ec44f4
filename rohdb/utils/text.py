"""
Text Helpers

Slug and display-name helpers shared by the importers.
"""

import re

_SEPARATORS = re.compile(r"[\s\-()]+")
_NON_WORD = re.compile(r"[^\w]", re.ASCII)
_UNDERSCORES = re.compile(r"_+")


def generate_slug(text: str) -> str:
    """
    Convert a display name to a directory slug.

    Example:
        >>> generate_slug("Sennheiser HD 800 S (2020)")
        'sennheiser_hd_800_s_2020'
    """
    slug = _SEPARATORS.sub("_", text.lower())
    slug = _NON_WORD.sub("", slug)
    slug = _UNDERSCORES.sub("_", slug)
    return slug.strip("_")


def to_title_case(text: str) -> str:
    """Lower-case every word, then capitalize its first letter."""
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))
