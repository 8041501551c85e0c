"""In-memory lookup backed by a JSON catalog.

Used by the CLI and the tests. A database-backed adapter implements the
same Lookup protocol.
"""

from __future__ import annotations

import threading
from datetime import date
from pathlib import Path
from typing import Any
from uuid import uuid4

import structlog
from pydantic import BaseModel, Field

from lotscan.core.models import BarcodeFormat
from lotscan.lookup.base import DuplicateBarcodeError
from lotscan.lookup.schemas import (
    BarcodeRecordRef,
    ContainerRef,
    IdentityMatch,
    ItemRef,
    LotRef,
)

logger = structlog.get_logger()


# Catalog file models


class CatalogItem(ItemRef):
    """Item row in a catalog file."""

    org_id: str


class CatalogLot(LotRef):
    """Lot row in a catalog file."""

    org_id: str


class CatalogContainer(ContainerRef):
    """Container row in a catalog file."""

    org_id: str


class CatalogBarcode(BaseModel):
    """Barcode record row in a catalog file."""

    id: str | None = None
    org_id: str
    barcode_value: str
    barcode_type: BarcodeFormat = BarcodeFormat.UNKNOWN
    item_id: str | None = None
    lot_id: str | None = None
    container_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Catalog(BaseModel):
    """Contents of a catalog JSON file."""

    items: list[CatalogItem] = Field(default_factory=list)
    lots: list[CatalogLot] = Field(default_factory=list)
    containers: list[CatalogContainer] = Field(default_factory=list)
    barcodes: list[CatalogBarcode] = Field(default_factory=list)


class InMemoryLookup:
    """Org-scoped items, lots, containers and barcode records held in dictionaries."""

    def __init__(self, catalog: Catalog | None = None):
        """Initialize the lookup.

        Args:
            catalog: Optional catalog to preload
        """
        self._items: dict[tuple[str, str], ItemRef] = {}
        self._lots: dict[tuple[str, str], LotRef] = {}
        self._containers: dict[tuple[str, str], ContainerRef] = {}
        self._barcodes: dict[tuple[str, str], BarcodeRecordRef] = {}
        self._lock = threading.Lock()

        if catalog is not None:
            for item in catalog.items:
                self.add_item(item.org_id, item.sku, name=item.name, item_id=item.id)
            for lot in catalog.lots:
                self.add_lot(
                    lot.org_id,
                    lot.item_id,
                    lot.lot_number,
                    lot_id=lot.id,
                    expiry_date=lot.expiry_date,
                    status=lot.status,
                )
            for container in catalog.containers:
                self.add_container(
                    container.org_id,
                    container.container_code,
                    container.status,
                    item_id=container.item_id,
                    lot_id=container.lot_id,
                    container_id=container.id,
                    label=container.label,
                    current_net_weight=container.current_net_weight,
                    weight_unit=container.weight_unit,
                    location=container.location,
                )
            for barcode in catalog.barcodes:
                self._store_record(
                    BarcodeRecordRef(
                        id=barcode.id or str(uuid4()),
                        org_id=barcode.org_id,
                        barcode_value=barcode.barcode_value,
                        barcode_type=barcode.barcode_type.value,
                        item_id=barcode.item_id,
                        lot_id=barcode.lot_id,
                        container_id=barcode.container_id,
                        metadata=barcode.metadata,
                    )
                )

    @classmethod
    def from_catalog(cls, path: str | Path) -> InMemoryLookup:
        """Load a lookup from a catalog JSON file.

        Raises:
            OSError: If the file cannot be read
            pydantic.ValidationError: If the file does not match the catalog shape
        """
        catalog = Catalog.model_validate_json(Path(path).read_text(encoding="utf-8"))
        logger.info(
            "catalog_loaded",
            path=str(path),
            items=len(catalog.items),
            lots=len(catalog.lots),
            containers=len(catalog.containers),
            barcodes=len(catalog.barcodes),
        )
        return cls(catalog)

    # Catalog maintenance

    def add_item(
        self, org_id: str, sku: str, name: str | None = None, item_id: str | None = None
    ) -> ItemRef:
        """Add an item and return its reference."""
        item = ItemRef(id=item_id or str(uuid4()), sku=sku, name=name)
        self._items[(org_id, item.id)] = item
        return item

    def add_lot(
        self,
        org_id: str,
        item_id: str,
        lot_number: str,
        lot_id: str | None = None,
        expiry_date: date | None = None,
        status: str | None = None,
    ) -> LotRef:
        """Add a lot of an existing item and return its reference."""
        lot = LotRef(
            id=lot_id or str(uuid4()),
            item_id=item_id,
            lot_number=lot_number,
            expiry_date=expiry_date,
            status=status,
        )
        self._lots[(org_id, lot.id)] = lot
        return lot

    def add_container(
        self,
        org_id: str,
        container_code: str,
        status: str,
        item_id: str | None = None,
        lot_id: str | None = None,
        container_id: str | None = None,
        label: str | None = None,
        current_net_weight: float | None = None,
        weight_unit: str = "kg",
        location: str | None = None,
    ) -> ContainerRef:
        """Add a container and return its reference."""
        container = ContainerRef(
            id=container_id or str(uuid4()),
            container_code=container_code,
            label=label,
            status=status,
            current_net_weight=current_net_weight,
            weight_unit=weight_unit,
            location=location,
            item_id=item_id,
            lot_id=lot_id,
        )
        self._containers[(org_id, container.id)] = container
        return container

    def _store_record(self, record: BarcodeRecordRef) -> BarcodeRecordRef:
        key = (record.org_id, record.barcode_value)
        with self._lock:
            if key in self._barcodes:
                raise DuplicateBarcodeError(
                    f"Barcode already registered for org {record.org_id}: {record.barcode_value!r}"
                )
            self._barcodes[key] = record
        return record

    def _item(self, org_id: str, item_id: str | None) -> ItemRef | None:
        if item_id is None:
            return None
        return self._items.get((org_id, item_id))

    def _lot(self, org_id: str, lot_id: str | None) -> LotRef | None:
        if lot_id is None:
            return None
        lot = self._lots.get((org_id, lot_id))
        if lot is None:
            return None
        return lot.model_copy(update={"item": self._item(org_id, lot.item_id)})

    def _container(self, org_id: str, container: ContainerRef | None) -> ContainerRef | None:
        if container is None:
            return None
        return container.model_copy(
            update={
                "item": self._item(org_id, container.item_id),
                "lot": self._lot(org_id, container.lot_id),
            }
        )

    # Lookup protocol

    def by_exact_code(self, org_id: str, code: str) -> BarcodeRecordRef | None:
        """Find the barcode record for this literal code, with item/lot/container joined."""
        record = self._barcodes.get((org_id, code))
        if record is None:
            return None
        container = None
        if record.container_id is not None:
            container = self._containers.get((org_id, record.container_id))
        return record.model_copy(
            update={
                "item": self._item(org_id, record.item_id),
                "lot": self._lot(org_id, record.lot_id),
                "container": self._container(org_id, container),
            }
        )

    def container_by_id(self, org_id: str, container_id: str) -> ContainerRef | None:
        """Find a container by id, with its item and lot joined."""
        return self._container(org_id, self._containers.get((org_id, container_id)))

    def container_by_code(self, org_id: str, container_code: str) -> ContainerRef | None:
        """Find a container whose printed code equals ``container_code``."""
        container = next(
            (
                c
                for (org, _), c in self._containers.items()
                if org == org_id and c.container_code == container_code
            ),
            None,
        )
        return self._container(org_id, container)

    def by_identity(
        self, org_id: str, gtin: str, lot_number: str | None = None
    ) -> IdentityMatch:
        """Find an item whose SKU equals ``gtin`` and, if given, its lot."""
        item = next(
            (i for (org, _), i in self._items.items() if org == org_id and i.sku == gtin),
            None,
        )
        if item is None:
            return IdentityMatch()

        if not lot_number:
            return IdentityMatch(item=item)

        lot = next(
            (
                self._lot(org_id, lot.id)
                for (org, _), lot in self._lots.items()
                if org == org_id and lot.item_id == item.id and lot.lot_number == lot_number
            ),
            None,
        )
        return IdentityMatch(item=item, lot=lot)

    def create_barcode_record(
        self,
        org_id: str,
        code: str,
        barcode_format: BarcodeFormat,
        item_id: str,
        lot_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> BarcodeRecordRef | None:
        """Store a code -> identity mapping keyed on (org, code).

        Raises:
            DuplicateBarcodeError: If the mapping already exists
        """
        record = self._store_record(
            BarcodeRecordRef(
                id=str(uuid4()),
                org_id=org_id,
                barcode_value=code,
                barcode_type=BarcodeFormat(barcode_format).value,
                item_id=item_id,
                lot_id=lot_id,
                metadata=metadata or {},
            )
        )
        logger.info(
            "barcode_record_created",
            org_id=org_id,
            barcode_id=record.id,
            item_id=item_id,
            lot_id=lot_id,
        )
        return record
