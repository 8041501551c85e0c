"""Scan audit records."""

from __future__ import annotations

from lotscan.core.models import ScanAction
from lotscan.schemas import ScanLogEntry, ScanResult, ScanSummary
from lotscan.user import CurrentUser


def build_scan_log_entry(
    result: ScanResult,
    user: CurrentUser,
    ip_address: str | None = None,
    user_agent: str | None = None,
    action_taken: ScanAction | None = None,
) -> ScanLogEntry:
    """Build the audit record for a resolved scan.

    Only resolved ids are kept, not the full rows. Persisting the entry is
    up to the caller.

    Args:
        result: Result returned by ScanResolver.resolve
        user: User who performed the scan
        ip_address: Client address, if known
        user_agent: Client user agent, if known
        action_taken: Action chosen after the scan, if already known

    Raises:
        ValueError: If the user has no email or organization scope
    """
    if not user.is_authenticated or not user.has_org_scope:
        raise ValueError("Scan log entries require an authenticated user with an organization")

    return ScanLogEntry(
        org_id=user.org_id,
        user_email=user.email,
        barcode_value=result.barcode,
        barcode_id=result.barcode_record.id if result.barcode_record else None,
        scan_result=ScanSummary(
            format=result.format,
            parsed=result.parsed.to_metadata(),
            item=result.item.id if result.item else None,
            lot=result.lot.id if result.lot else None,
            container=result.container.id if result.container else None,
        ),
        action_taken=action_taken,
        ip_address=ip_address,
        user_agent=user_agent,
    )
