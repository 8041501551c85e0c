"""Scan resolution: parsed barcode -> item/lot/container identity and next actions."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from lotscan.config import ScannerSettings, get_settings
from lotscan.core.barcode_parser import ParsedBarcode, parse_barcode, validate_input
from lotscan.core.models import BarcodeFormat, ContainerStatus, ScanAction, ScanError
from lotscan.lookup.base import DuplicateBarcodeError, Lookup, LookupStoreError
from lotscan.lookup.schemas import (
    BarcodeRecordRef,
    ContainerRef,
    IdentityMatch,
    ItemRef,
    LotRef,
)
from lotscan.schemas import ScanResult
from lotscan.user import CurrentUser

logger = structlog.get_logger()

NOT_FOUND_MESSAGE = "No matching item or lot found in database"
CONTAINER_NOT_FOUND_MESSAGE = "Container not found for this barcode"

_ITEM_ACTIONS = (ScanAction.CREATE_LOT, ScanAction.VIEW_ITEM, ScanAction.PRINT_LABEL)
_LOT_ACTIONS = (
    ScanAction.ADD_TO_BATCH,
    ScanAction.ADJUST_INVENTORY,
    ScanAction.VIEW_LOT,
    ScanAction.PRINT_LABEL,
)
_CONTAINER_ACTIONS = (ScanAction.WEIGH_CONTAINER, ScanAction.VIEW_DETAILS)
_CONTAINER_STATUS_ACTIONS = {
    ContainerStatus.BACKSTOCK: (ScanAction.MOVE_TO_PRODUCTION,),
    ContainerStatus.ACTIVE: (ScanAction.USE_IN_BATCH, ScanAction.MOVE_TO_BACKSTOCK),
}


def derive_actions(item: ItemRef | None, lot: LotRef | None) -> list[ScanAction]:
    """Actions offered for a resolution, in display order.

    A lot without an item is treated like nothing found.
    """
    if item is not None and lot is not None:
        return list(_LOT_ACTIONS)
    if item is not None:
        return list(_ITEM_ACTIONS)
    return [ScanAction.CREATE_ITEM]


def derive_container_actions(container: ContainerRef | None) -> list[ScanAction]:
    """Actions offered for a container scan, in display order.

    Every container can be weighed and viewed. Backstock containers can go
    to production; active ones can be used in a batch or sent back to
    backstock. Other statuses get the common actions only.
    """
    if container is None:
        return [ScanAction.CREATE_CONTAINER]

    actions = list(_CONTAINER_ACTIONS)
    for status, extra in _CONTAINER_STATUS_ACTIONS.items():
        if container.status == status.value:
            actions.extend(extra)
    return actions


class ScanResolver:
    """Resolves scanned strings against inventory identity."""

    def __init__(self, lookup: Lookup, settings: ScannerSettings | None = None):
        """Initialize scan resolver.

        Args:
            lookup: Inventory lookup capability
            settings: Scanner settings. If None, uses global settings.
        """
        self.lookup = lookup
        self._settings = settings or get_settings().scanner

    def resolve(self, raw: str, user: CurrentUser | None) -> ScanResult:
        """Resolve a scanned string.

        Validation and permission failures return immediately without any
        lookup. Store failures during a lookup step count as "not found" for
        that step; anything else escaping the lookups is reported as
        NETWORK_ERROR. This method does not raise for lookup failures.

        Args:
            raw: Raw scanned string
            user: Current user with organization scope

        Returns:
            ScanResult with resolved identities and permitted actions
        """
        validation = validate_input(raw, max_length=self._settings.max_input_length)
        if not validation.valid:
            return self._invalid(raw, validation.error)

        parsed = parse_barcode(raw)
        denied = self._check_scope(parsed, user)
        if denied is not None:
            return denied

        org_id = user.org_id
        try:
            record, item, lot = self._lookup(org_id, parsed)
        except Exception as e:
            return self._network_error(parsed, org_id, e)

        resolved = item is not None or lot is not None
        result = ScanResult(
            barcode=raw,
            format=parsed.format,
            parsed=parsed,
            item=item,
            lot=lot,
            barcode_record=record,
            actions=derive_actions(item, lot),
            error=None if resolved else ScanError.NOT_FOUND,
            error_message=None if resolved else NOT_FOUND_MESSAGE,
        )

        logger.info(
            "scan_resolved",
            org_id=org_id,
            user=user.email,
            format=parsed.format.value,
            barcode_id=record.id if record else None,
            item_id=item.id if item else None,
            lot_id=lot.id if lot else None,
            error=result.error.value if result.error else None,
        )
        return result

    def resolve_container(self, raw: str, user: CurrentUser | None) -> ScanResult:
        """Resolve a scanned string to an inventory container.

        Tried in order, first hit wins:

        1. the ``containerId`` of a QR container label
        2. the literal container code (e.g. CNT-2025-001)
        3. a barcode record (supplier or internal) linked to a container

        Validation, permission and failure handling are the same as resolve().
        Nothing is registered on this path.

        Args:
            raw: Raw scanned string
            user: Current user with organization scope

        Returns:
            ScanResult with the container, its item and lot, and the
            container actions
        """
        validation = validate_input(raw, max_length=self._settings.max_input_length)
        if not validation.valid:
            return self._invalid(raw, validation.error)

        parsed = parse_barcode(raw)
        denied = self._check_scope(parsed, user)
        if denied is not None:
            return denied

        org_id = user.org_id
        try:
            record, container = self._lookup_container(org_id, parsed)
        except Exception as e:
            return self._network_error(parsed, org_id, e)

        found = container is not None
        result = ScanResult(
            barcode=raw,
            format=parsed.format,
            parsed=parsed,
            item=container.item if found else None,
            lot=container.lot if found else None,
            container=container,
            barcode_record=record,
            actions=derive_container_actions(container),
            error=None if found else ScanError.NOT_FOUND,
            error_message=None if found else CONTAINER_NOT_FOUND_MESSAGE,
        )

        logger.info(
            "container_scan_resolved",
            org_id=org_id,
            user=user.email,
            format=parsed.format.value,
            container_id=container.id if found else None,
            status=container.status if found else None,
            error=result.error.value if result.error else None,
        )
        return result

    def _invalid(self, raw: object, error: str | None) -> ScanResult:
        logger.info("scan_rejected", error=error)
        barcode = raw if isinstance(raw, str) else ""
        return ScanResult(
            barcode=barcode,
            format=BarcodeFormat.UNKNOWN,
            parsed=ParsedBarcode(raw=barcode, format=BarcodeFormat.UNKNOWN),
            error=ScanError.INVALID_FORMAT,
            error_message=error,
        )

    def _check_scope(self, parsed: ParsedBarcode, user: CurrentUser | None) -> ScanResult | None:
        if user is None or not user.is_authenticated:
            return self._denied(parsed, "User not authenticated")
        if not user.has_org_scope:
            return self._denied(parsed, "User has no organization scope")
        return None

    def _denied(self, parsed: ParsedBarcode, message: str) -> ScanResult:
        logger.warning("scan_permission_denied", reason=message)
        return ScanResult(
            barcode=parsed.raw,
            format=parsed.format,
            parsed=parsed,
            error=ScanError.PERMISSION_DENIED,
            error_message=message,
        )

    def _network_error(self, parsed: ParsedBarcode, org_id: str, error: Exception) -> ScanResult:
        logger.error(
            "scan_resolution_failed", barcode=parsed.raw, org_id=org_id, error=str(error)
        )
        return ScanResult(
            barcode=parsed.raw,
            format=parsed.format,
            parsed=parsed,
            error=ScanError.NETWORK_ERROR,
            error_message=str(error) or "Unknown error occurred",
        )

    def _lookup(
        self, org_id: str, parsed: ParsedBarcode
    ) -> tuple[BarcodeRecordRef | None, ItemRef | None, LotRef | None]:
        """Exact-code lookup, then GTIN/SKU fallback with record registration."""
        record = self._find_exact(org_id, parsed.raw)
        if record is not None:
            lot = record.lot
            item = record.item or (lot.item if lot is not None else None)
            return record, item, lot

        if not parsed.gtin:
            return None, None, None

        match = self._find_identity(org_id, parsed.gtin, parsed.lot)
        if match.item is None:
            return None, None, None

        if self._settings.register_fallback_matches:
            record = self._register(org_id, parsed, match.item, match.lot)
        return record, match.item, match.lot

    def _lookup_container(
        self, org_id: str, parsed: ParsedBarcode
    ) -> tuple[BarcodeRecordRef | None, ContainerRef | None]:
        """Container by QR id, then by container code, then via a linked barcode record."""
        if parsed.format is BarcodeFormat.QR and parsed.container_id:
            container = self._find_container(
                self.lookup.container_by_id, org_id, parsed.container_id
            )
            if container is not None:
                return None, container

        container = self._find_container(self.lookup.container_by_code, org_id, parsed.raw)
        if container is not None:
            return None, container

        record = self._find_exact(org_id, parsed.raw)
        if record is None or record.container_id is None:
            return None, None

        container = self._find_container(self.lookup.container_by_id, org_id, record.container_id)
        return (record, container) if container is not None else (None, None)

    def _find_exact(self, org_id: str, code: str) -> BarcodeRecordRef | None:
        try:
            return self.lookup.by_exact_code(org_id, code)
        except LookupStoreError as e:
            logger.warning("exact_lookup_failed", org_id=org_id, error=str(e))
            return None

    def _find_identity(self, org_id: str, gtin: str, lot_number: str | None) -> IdentityMatch:
        try:
            return self.lookup.by_identity(org_id, gtin, lot_number)
        except LookupStoreError as e:
            logger.warning("identity_lookup_failed", org_id=org_id, gtin=gtin, error=str(e))
            return IdentityMatch()

    def _find_container(
        self, finder: Callable[[str, str], ContainerRef | None], org_id: str, key: str
    ) -> ContainerRef | None:
        try:
            return finder(org_id, key)
        except LookupStoreError as e:
            logger.warning("container_lookup_failed", org_id=org_id, key=key, error=str(e))
            return None

    def _register(
        self, org_id: str, parsed: ParsedBarcode, item: ItemRef, lot: LotRef | None
    ) -> BarcodeRecordRef | None:
        """Store the raw string -> identity mapping found via fallback.

        Failure never fails the scan. A duplicate means a concurrent scan
        registered the same code first, so that record is read back.
        """
        try:
            record = self.lookup.create_barcode_record(
                org_id,
                parsed.raw,
                parsed.format,
                item.id,
                lot.id if lot is not None else None,
                parsed.to_metadata(),
            )
        except DuplicateBarcodeError:
            logger.debug("barcode_record_exists", org_id=org_id, item_id=item.id)
            return self._find_exact(org_id, parsed.raw)
        except Exception as e:
            logger.warning("barcode_record_create_failed", org_id=org_id, error=str(e))
            return None

        if record is None:
            logger.warning("barcode_record_create_failed", org_id=org_id, error="no record returned")
        return record
