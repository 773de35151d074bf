"""
Pydantic response models for the API.

Field() descriptions and examples feed the OpenAPI docs at /docs.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# ── Facet catalog models ──────────────────────────────────────────────────────

class ProductOut(BaseModel):
    """An installed product."""
    id: int = Field(..., description="Product (content path) ID", examples=[7])
    name: str = Field(..., description="Product name", examples=["Massive X"])
    vendor: str = Field(..., description="Vendor of the product", examples=["Native Instruments"])


class CategoryOut(BaseModel):
    """A category path; lower levels may be empty."""
    id: int = Field(..., description="Category ID", examples=[12])
    name: str = Field(..., description="Top-level category", examples=["Synth Pad"])
    subcategory: str = Field("", description="Second level", examples=["Basic Pad"])
    subsubcategory: str = Field("", description="Third level", examples=[""])


class ModeOut(BaseModel):
    """A sound characteristic."""
    id: int = Field(..., description="Mode ID", examples=[3])
    name: str = Field(..., description="Mode name", examples=["Warm"])


class BankOut(BaseModel):
    """A bank chain; lower entries may be empty."""
    id: int = Field(..., description="Bank chain ID", examples=[5])
    entry1: str = Field(..., description="Bank", examples=["Factory"])
    entry2: str = Field("", description="Sub-bank", examples=["Pads"])
    entry3: str = Field("", description="Sub-sub-bank", examples=[""])


# ── Preset models ─────────────────────────────────────────────────────────────

class PresetOut(BaseModel):
    """One preset."""
    id: int = Field(..., description="Preset (sound info) ID", examples=[1001])
    name: str = Field(..., description="Preset name", examples=["Glass Pad 2"])
    comment: str = Field("", description="Preset comment")
    vendor: str = Field("", description="Vendor name", examples=["Native Instruments"])
    product_id: int = Field(..., description="Product ID", examples=[7])
    product_name: str = Field("", description="Product name", examples=["Massive X"])
    file_name: str = Field("", description="Preset file on disk")
    bank: int = Field(0, description="Bank chain ID; 0 means no bank", examples=[5])
    categories: list[int] = Field(default_factory=list, description="Category IDs")
    modes: list[int] = Field(default_factory=list, description="Mode IDs")


class PresetPage(BaseModel):
    """Response body for GET /api/v1/presets.

    ``results`` holds rows ``start`` (inclusive) to ``end`` (exclusive) of
    ``total`` matches.
    """
    results: list[PresetOut] = Field(..., description="Presets on this page")
    total: int = Field(..., description="Total matching presets", examples=[4000])
    start: int = Field(..., description="Offset of the first result", examples=[0])
    end: int = Field(..., description="start + number of results", examples=[50])


class ActivationOut(BaseModel):
    """Response body for POST /api/v1/presets/{id}/activate."""
    id: int = Field(..., description="Activated preset ID", examples=[1001])
    preview: str | None = Field(None, description="Preview file handed to the player, if any")


# ── Status models ─────────────────────────────────────────────────────────────

class StatusOut(BaseModel):
    """Library readiness."""
    db_found: bool = Field(..., description="Whether the browser database exists")
    loading: bool = Field(..., description="True until the library has loaded")
    db_path: str = Field(..., description="Database path in use")
    preset_count: int | None = Field(None, description="Presets loaded; null until ready")
    error: str | None = Field(None, description="Load error, if loading failed")


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Bad Request"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[400])
