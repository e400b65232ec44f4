"""Utility helpers."""

from rohdb.utils.files import write_json
from rohdb.utils.text import generate_slug, to_title_case

__all__ = ["generate_slug", "to_title_case", "write_json"]
