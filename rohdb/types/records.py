"""
Catalog Record Types

Pydantic mirrors of the three info.json record shapes.

Pipelines that copy payloads between trees (assembly, merge) keep records as
plain dicts so unknown fields pass through untouched; these models are used
where records are built from scratch (the AutoEQ importer) and for typed
access in tests.
"""

from typing import Literal

from pydantic import BaseModel, Field

Subtype = Literal["over_the_ear", "on_ear", "in_ear", "earbuds"]

SUBTYPES: tuple[str, ...] = ("over_the_ear", "on_ear", "in_ear", "earbuds")

# Placeholder subtype written by importers that cannot tell; must be resolved
# before a product record validates.
UNKNOWN_SUBTYPE = "unknown"

BandType = Literal[
    "peak_dip", "high_shelf", "low_shelf", "low_pass", "high_pass", "band_pass", "band_stop"
]

Slope = Literal[6, 12, 18, 24, 30, 36]


class VendorInfo(BaseModel):
    """vendors/<slug>/info.json"""

    name: str
    official_name: str | None = None
    blurb: str = ""
    logo: str | None = Field(default=None, description="Path to a 1024x1024 PNG")


class ProductInfo(BaseModel):
    """vendors/<v>/products/<slug>/info.json"""

    vendor_id: str | None = None
    name: str
    blurb: str = ""
    photo: str | None = None
    line_art_svg: str | None = None
    line_art_96x64_png: str | None = None
    type: Literal["headphones"] = "headphones"
    subtype: Subtype | Literal["unknown"]


class EQBand(BaseModel):
    """A single parametric EQ filter."""

    type: BandType
    frequency: float = Field(..., description="Center frequency in Hz")
    gain_db: float | None = None
    q: float | None = None
    slope: Slope | None = None


class EQParameters(BaseModel):
    """Overall gain plus bands, sorted by priority."""

    gain_db: float
    bands: list[EQBand] = Field(default_factory=list)


class EQInfo(BaseModel):
    """vendors/<v>/products/<p>/eq/<slug>/info.json"""

    product_id: str | None = None
    author: str
    details: str
    link: str | None = None
    type: Literal["parametric_eq"] = "parametric_eq"
    parameters: EQParameters


def to_record(model: BaseModel) -> dict:
    """Dump a record model the way it is stored on disk (unset optionals omitted)."""
    return model.model_dump(exclude_none=True)
