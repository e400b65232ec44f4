"""
Result Types

Types produced by the build, merge, import and classification steps.

    - RecordKind: vendor / product / eq
    - CatalogRecord: One line of database_v1.jsonl
    - AssetAction: One decision taken (or planned) by the asset store
    - AssemblyResult: Summary of a catalog build
    - MergeReport: Summary of a tree merge
    - ImportResult: Summary of an AutoEQ or Oratory import
    - VendorProductSplit: Structured classifier output
    - ExtractedEQ, ExtractedBand: Structured vision output for EQ tables
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


class RecordKind(str, Enum):
    """Kinds of catalog records, in ownership order."""

    VENDOR = "vendor"
    PRODUCT = "product"
    EQ = "eq"


class CatalogRecord(BaseModel):
    """
    A tagged record in the build artifact.

    Attributes:
        type: Record kind
        id: vendor slug, <vendor>_<product>, or <vendor>_<product>_<eq>
        data: The validated info.json payload with asset references rewritten
    """

    type: RecordKind
    id: str
    data: dict[str, Any]

    def to_json_line(self) -> str:
        """Serialize as a compact JSON line (no trailing newline)."""
        return json.dumps(
            {"type": self.type.value, "id": self.id, "data": self.data},
            ensure_ascii=False,
            separators=(",", ":"),
        )


class AssetAction(BaseModel):
    """
    A decision taken by the asset store.

    Attributes:
        action: copy (original stored), generate (raster derived), skip (already present)
        source: Source file the action was taken for
        target: Canonical reference relative to the dist directory
    """

    action: Literal["copy", "generate", "skip"]
    source: str
    target: str


class AssemblyResult(BaseModel):
    """
    Result of a catalog build.

    Attributes:
        record_count: Records written (or that would have been written)
        artifact_path: Path of the artifact, None in dry-run mode
        dry_run: Whether the filesystem was left untouched
        records: The emitted records in discovery order
        actions: Asset store decisions in the order they were taken
    """

    record_count: int = 0
    artifact_path: Path | None = None
    dry_run: bool = False
    records: list[CatalogRecord] = Field(default_factory=list)
    actions: list[AssetAction] = Field(default_factory=list)

    @property
    def action_set(self) -> set[tuple[str, str]]:
        """(action, target) pairs, for comparing dry and real runs."""
        return {(a.action, a.target) for a in self.actions}


class MergeReport(BaseModel):
    """
    Result of merging a source tree into a target tree.

    Attributes:
        vendors_matched / vendors_created: Vendor identity outcomes
        products_matched / products_created: Product identity outcomes
        eqs_created: New EQ presets written
        eqs_updated: Matched EQs whose info.json was rewritten
        eqs_unchanged: Matched EQs already identical to the source
        rejected: Human-readable entries for every skipped/rejected entity
    """

    vendors_matched: int = 0
    vendors_created: int = 0
    products_matched: int = 0
    products_created: int = 0
    eqs_created: int = 0
    eqs_updated: int = 0
    eqs_unchanged: int = 0
    rejected: list[str] = Field(default_factory=list)

    @property
    def entities_created(self) -> int:
        """Total new vendors, products and EQs."""
        return self.vendors_created + self.products_created + self.eqs_created

    @property
    def files_written(self) -> int:
        """Total info.json files written to the target."""
        return self.entities_created + self.eqs_updated


class ImportResult(BaseModel):
    """
    Result of importing an EQ collection (AutoEQ results or Oratory PDFs).

    Attributes:
        eqs_written: EQ records written
        skipped: Source files skipped, with the reason
    """

    eqs_written: int = 0
    skipped: list[str] = Field(default_factory=list)


class VendorProductSplit(BaseModel):
    """Vendor and product parts of a raw product name."""

    vendor_name: str = Field(
        ..., description="Vendor part, e.g. 'Sennheiser' for 'Sennheiser HD 800 S'"
    )
    product_name: str = Field(
        ..., description="Product part, e.g. 'HD 800 S' for 'Sennheiser HD 800 S'"
    )


class ExtractedBand(BaseModel):
    """One filter read off a published EQ table."""

    type: Literal["peak_dip", "high_shelf", "low_shelf"] = Field(
        ..., description="The equalizer element type."
    )
    frequency: float = Field(..., description="The center frequency of the filter in Hz.")
    gain_db: float = Field(..., description="The gain at the center frequency, in dB.")
    q: float = Field(
        ...,
        description="The Q value for the band, which determines the width of the filter "
        "in the frequency domain.",
    )


class ExtractedEQ(BaseModel):
    """Structured vision output for a parametric EQ table."""

    gain_db: float = Field(
        ..., description="An overall gain adjustment to apply as part of equalization."
    )
    bands: list[ExtractedBand] = Field(
        ...,
        description="The parametric EQ bands, sorted by priority. Software that supports "
        "a limited number of bands should truncate the list.",
    )
