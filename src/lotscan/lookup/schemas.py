"""Typed inventory references returned by lookups.

Storage adapters validate their rows into these models, so the resolver
never touches column names directly. Unknown columns are ignored.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field


class ItemRef(BaseModel):
    """An inventory item (item master row)."""

    model_config = {"extra": "ignore", "from_attributes": True}

    id: str
    sku: str
    name: str | None = None


class LotRef(BaseModel):
    """A lot of an item."""

    model_config = {"extra": "ignore", "from_attributes": True}

    id: str
    item_id: str
    lot_number: str
    expiry_date: date | None = None
    status: str | None = None
    item: ItemRef | None = Field(default=None, description="Parent item, when joined")


class ContainerRef(BaseModel):
    """A physical container (drum, tote, bag) holding one lot of an item."""

    model_config = {"extra": "ignore", "from_attributes": True}

    id: str
    container_code: str
    label: str | None = None
    status: str = Field(..., description="Lifecycle state, e.g. active or backstock")
    current_net_weight: float | None = None
    weight_unit: str = "kg"
    location: str | None = None
    item_id: str | None = None
    lot_id: str | None = None
    item: ItemRef | None = Field(default=None, description="Contained item, when joined")
    lot: LotRef | None = Field(default=None, description="Contained lot, when joined")


class BarcodeRecordRef(BaseModel):
    """Stored mapping of one literal barcode string to an item, lot or container."""

    model_config = {"extra": "ignore", "from_attributes": True}

    id: str
    org_id: str
    barcode_value: str
    barcode_type: str
    item_id: str | None = None
    lot_id: str | None = None
    container_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    item: ItemRef | None = None
    lot: LotRef | None = None
    container: ContainerRef | None = None


class IdentityMatch(BaseModel):
    """Result of an identity (SKU/GTIN + lot number) lookup."""

    item: ItemRef | None = None
    lot: LotRef | None = None
