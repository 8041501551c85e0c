"""Lookup capability consumed by the scan resolver."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from lotscan.core.models import BarcodeFormat
from lotscan.lookup.schemas import BarcodeRecordRef, ContainerRef, IdentityMatch


class LookupStoreError(Exception):
    """Raised when the backing store cannot answer a lookup."""

    pass


class DuplicateBarcodeError(LookupStoreError):
    """Raised when a barcode record already exists for (org, code)."""

    pass


@runtime_checkable
class Lookup(Protocol):
    """Inventory identity lookups scoped to one organization.

    Implementations return None (or an empty IdentityMatch) for "not found"
    and raise LookupStoreError when the store itself fails.
    """

    def by_exact_code(self, org_id: str, code: str) -> BarcodeRecordRef | None:
        """Find the barcode record for this literal code, with item/lot joined."""
        ...

    def by_identity(
        self, org_id: str, gtin: str, lot_number: str | None = None
    ) -> IdentityMatch:
        """Find an item by SKU and, when a lot number is given, that lot."""
        ...

    def container_by_id(self, org_id: str, container_id: str) -> ContainerRef | None:
        """Find a container by id, with its item and lot joined."""
        ...

    def container_by_code(self, org_id: str, container_code: str) -> ContainerRef | None:
        """Find a container by its printed code (e.g. CNT-2025-001)."""
        ...

    def create_barcode_record(
        self,
        org_id: str,
        code: str,
        barcode_format: BarcodeFormat,
        item_id: str,
        lot_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> BarcodeRecordRef | None:
        """Store a code -> identity mapping.

        Raises:
            DuplicateBarcodeError: If the (org, code) mapping already exists
        """
        ...
