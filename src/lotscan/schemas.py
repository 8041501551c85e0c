"""Pydantic result schemas for lotscan."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from lotscan.core.barcode_parser import ParsedBarcode
from lotscan.core.models import BarcodeFormat, ScanAction, ScanError
from lotscan.lookup.schemas import BarcodeRecordRef, ContainerRef, ItemRef, LotRef


class ScanResult(BaseModel):
    """Outcome of resolving one scanned string."""

    barcode: str = Field(..., description="Raw scanned string, verbatim")
    format: BarcodeFormat
    parsed: ParsedBarcode
    item: ItemRef | None = None
    lot: LotRef | None = None
    container: ContainerRef | None = None
    barcode_record: BarcodeRecordRef | None = None
    actions: list[ScanAction] = Field(default_factory=list)
    error: ScanError | None = None
    error_message: str | None = None

    @property
    def is_resolved(self) -> bool:
        """Check if an item, lot or container was found."""
        return self.item is not None or self.lot is not None or self.container is not None


class ScanSummary(BaseModel):
    """Resolved ids of a scan, as stored in the scan log."""

    format: BarcodeFormat
    parsed: dict[str, Any]
    item: str | None = None
    lot: str | None = None
    container: str | None = None


class ScanLogEntry(BaseModel):
    """Audit record of a scan, persisted by the caller."""

    org_id: str
    user_email: str
    barcode_value: str
    barcode_id: str | None = None
    scan_result: ScanSummary
    action_taken: ScanAction | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    def with_action(self, action: ScanAction) -> ScanLogEntry:
        """Copy of this entry recording the action the operator took."""
        return self.model_copy(update={"action_taken": ScanAction(action)})
