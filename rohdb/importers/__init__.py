"""
Importers

Converters from third-party EQ collections into catalog trees, typically
followed by a merge into the main database.

Modules:
    autoeq: AutoEQ results directory importer
    oratory: oratory1990 PDF importer (rendered page read by a vision model)
"""

from rohdb.importers.autoeq import AutoEQImporter, parse_parametric_eq
from rohdb.importers.oratory import OratoryImporter, parse_filename, parse_metadata

__all__ = [
    "AutoEQImporter",
    "parse_parametric_eq",
    "OratoryImporter",
    "parse_filename",
    "parse_metadata",
]
