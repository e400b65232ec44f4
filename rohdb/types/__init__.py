"""
Type Definitions

Pydantic models for catalog records and pipeline results.

Record Models (mirroring info.json files):
    - VendorInfo, ProductInfo, EQInfo, EQParameters, EQBand

Result Models:
    - CatalogRecord, RecordKind - Build artifact lines
    - AssetAction, AssemblyResult - Catalog build output
    - MergeReport - Tree merge output
    - ImportResult - Importer output
    - VendorProductSplit - Classifier output
    - ExtractedEQ, ExtractedBand - Vision extraction output
"""

from rohdb.types.records import (
    SUBTYPES,
    UNKNOWN_SUBTYPE,
    EQBand,
    EQInfo,
    EQParameters,
    ProductInfo,
    Subtype,
    VendorInfo,
    to_record,
)
from rohdb.types.results import (
    AssemblyResult,
    AssetAction,
    CatalogRecord,
    ExtractedBand,
    ExtractedEQ,
    ImportResult,
    MergeReport,
    RecordKind,
    VendorProductSplit,
)

__all__ = [
    # Record Models
    "VendorInfo",
    "ProductInfo",
    "EQInfo",
    "EQParameters",
    "EQBand",
    "Subtype",
    "SUBTYPES",
    "UNKNOWN_SUBTYPE",
    "to_record",
    # Result Models
    "RecordKind",
    "CatalogRecord",
    "AssetAction",
    "AssemblyResult",
    "MergeReport",
    "ImportResult",
    "VendorProductSplit",
    "ExtractedEQ",
    "ExtractedBand",
]
