"""Barcode parsing for lotscan.

Turns a raw scanned string into a ParsedBarcode. Supported payloads are
GS1-128 Application Identifier strings, JSON QR payloads, EAN/UPC digit
strings and plain alphanumeric codes. Also builds the JSON payload printed
on lot, batch and container labels, which the QR branch reads back.
"""

from __future__ import annotations

import calendar
import json
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

import structlog

from lotscan.core.models import BarcodeFormat, LabelType

logger = structlog.get_logger()

MAX_BARCODE_LENGTH = 255
GROUP_SEPARATOR = chr(29)
SYMBOLOGY_PREFIXES = ("]C1", "]d2")
_MAX_SAFE_FLOAT_INT = 2**53

_SUSPICIOUS_CONTENT = re.compile(r"<script|javascript:|on\w+=", re.IGNORECASE | re.ASCII)
_GS1_LEADING_AI = re.compile(r"\d{2,4}", re.ASCII)
_EAN_UPC = re.compile(r"\d{13}|\d{8}|\d{12}", re.ASCII)
_ALPHANUMERIC = re.compile(r"[A-Za-z0-9\-_]+")
_NUMERIC_PREFIX = re.compile(r"\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?", re.ASCII)


@dataclass(frozen=True)
class ApplicationIdentifier:
    """A supported GS1 Application Identifier.

    ``length`` is None for variable-length fields, which run to the next
    group separator or the end of the payload.
    """

    code: str
    attribute: str
    length: int | None = None
    kind: str = "text"


SUPPORTED_AIS: tuple[ApplicationIdentifier, ...] = (
    ApplicationIdentifier("01", "gtin", length=14),
    ApplicationIdentifier("10", "lot"),
    ApplicationIdentifier("21", "serial"),
    ApplicationIdentifier("17", "expiry_date", length=6, kind="date"),
    ApplicationIdentifier("11", "production_date", length=6, kind="date"),
    ApplicationIdentifier("30", "quantity", kind="number"),
)


@dataclass(frozen=True)
class ParsedBarcode:
    """Parsed barcode data.

    ``raw`` is always the literal scanned string. Every decoded field is
    None when the payload does not carry it.
    """

    raw: str
    format: BarcodeFormat = BarcodeFormat.UNKNOWN
    gtin: str | None = None
    lot: str | None = None
    serial: str | None = None
    expiry_date: date | None = None
    production_date: date | None = None
    quantity: int | float | None = None
    container_id: str | None = None
    container_code: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_metadata(self) -> dict[str, Any]:
        """JSON-safe dict of the decoded fields, stored with barcode records."""
        metadata: dict[str, Any] = {"raw": self.raw, "format": self.format.value}
        for name in ("gtin", "lot", "serial", "quantity", "container_id", "container_code"):
            value = getattr(self, name)
            if value is not None:
                metadata[name] = value
        for name in ("expiry_date", "production_date"):
            value = getattr(self, name)
            if value is not None:
                metadata[name] = value.isoformat()
        if self.extra:
            metadata["extra"] = dict(self.extra)
        return metadata


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate_input."""

    valid: bool
    error: str | None = None


def validate_input(raw: object, max_length: int = MAX_BARCODE_LENGTH) -> ValidationResult:
    """Check a scanned string before parsing.

    This is input hygiene for obviously abusive payloads (oversized input,
    script or event-handler fragments), not a complete sanitizer. The first
    failing rule wins.

    Args:
        raw: Scanned value as received from the caller
        max_length: Maximum accepted length in characters

    Returns:
        ValidationResult with ``valid`` and, on failure, an error message
    """
    if not isinstance(raw, str) or not raw:
        return ValidationResult(valid=False, error="Barcode must be a non-empty string")

    if len(raw) > max_length:
        return ValidationResult(
            valid=False,
            error=f"Barcode exceeds maximum length of {max_length} characters",
        )

    if _SUSPICIOUS_CONTENT.search(raw):
        return ValidationResult(valid=False, error="Invalid barcode content")

    return ValidationResult(valid=True)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _load_json(raw: str) -> Any:
    """Strict JSON decoding (NaN and Infinity are not JSON)."""
    return json.loads(raw, parse_constant=_reject_constant)


def _is_json(raw: str) -> bool:
    try:
        _load_json(raw)
    except (ValueError, RecursionError):
        return False
    return True


def detect_format(raw: str) -> BarcodeFormat:
    """Detect the encoding family of a scanned string.

    First match wins. Any payload starting with two or more digits is
    classified GS1-128 before the EAN/UPC check runs, so a bare EAN-13 such
    as ``"8901234567890"`` comes back as GS1-128. Stored ``barcode_type``
    values depend on this order.

    Examples:
        >>> detect_format("]C10109876543210987")
        <BarcodeFormat.GS1_128: 'GS1-128'>
        >>> detect_format('{"sku": "SKU-1"}')
        <BarcodeFormat.QR: 'QR'>
        >>> detect_format("PART-88219")
        <BarcodeFormat.CODE128: 'CODE128'>
    """
    if not isinstance(raw, str) or not raw:
        return BarcodeFormat.UNKNOWN

    if raw.startswith(SYMBOLOGY_PREFIXES) or _GS1_LEADING_AI.match(raw):
        return BarcodeFormat.GS1_128

    if _is_json(raw):
        return BarcodeFormat.QR

    if _EAN_UPC.fullmatch(raw):
        return BarcodeFormat.EAN

    if _ALPHANUMERIC.fullmatch(raw):
        return BarcodeFormat.CODE128

    return BarcodeFormat.UNKNOWN


def parse_gs1_date(value: str) -> date | None:
    """Parse a GS1 ``YYMMDD`` date.

    Years 00-49 map to 20xx and 50-99 to 19xx. A day of ``00`` stands for
    the last day of the month.

    Examples:
        >>> parse_gs1_date("240115")
        datetime.date(2024, 1, 15)
        >>> parse_gs1_date("500101")
        datetime.date(1950, 1, 1)
    """
    if not isinstance(value, str) or len(value) != 6:
        return None
    if not (value.isascii() and value.isdigit()):
        return None

    yy, mm, dd = int(value[0:2]), int(value[2:4]), int(value[4:6])
    year = 2000 + yy if yy < 50 else 1900 + yy

    if dd == 0 and 1 <= mm <= 12:
        dd = calendar.monthrange(year, mm)[1]

    try:
        return date(year, mm, dd)
    except ValueError:
        return None


def _parse_number(value: str) -> int | float | None:
    """Read the leading numeric part of ``value``.

    Values that overflow to infinity are absent, since they cannot be
    stored as JSON.
    """
    match = _NUMERIC_PREFIX.match(value)
    if match is None:
        return None
    number = float(match.group())
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def _parse_gs1(payload: str) -> dict[str, Any]:
    """Extract the supported AIs from a GS1-128 payload.

    AI codes are located by substring search, not by walking the element
    string, so an AI code that appears inside another field's value can be
    picked up instead of the real one.
    """
    remaining = payload
    if remaining.startswith(SYMBOLOGY_PREFIXES):
        remaining = remaining[3:]

    fields: dict[str, Any] = {}
    for ai in SUPPORTED_AIS:
        index = remaining.find(ai.code)
        if index == -1:
            continue

        start = index + len(ai.code)
        if ai.length is None:
            end = remaining.find(GROUP_SEPARATOR, start)
            value = remaining[start:] if end == -1 else remaining[start:end]
        else:
            value = remaining[start : start + ai.length]

        if ai.kind == "date":
            decoded: Any = parse_gs1_date(value)
        elif ai.kind == "number":
            decoded = _parse_number(value)
        else:
            decoded = value

        if decoded is not None and decoded != "":
            fields[ai.attribute] = decoded

    return fields


def _first(data: dict[str, Any], *keys: str) -> Any:
    """First truthy value among ``keys``."""
    return next((data[key] for key in keys if data.get(key)), None)


def _as_text(value: Any) -> str | None:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    # Integral floats print without the fraction only while exactly representable
    if isinstance(value, float) and value.is_integer() and abs(value) < _MAX_SAFE_FLOAT_INT:
        value = int(value)
    return str(value)


def _as_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return _parse_number(value)
    return None


def _as_iso_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def _parse_qr(payload: str) -> dict[str, Any]:
    """Decode a JSON QR payload, normalizing the identity field aliases."""
    data = _load_json(payload)
    if not isinstance(data, dict):
        return {}

    fields: dict[str, Any] = {"extra": dict(data)}
    normalized = {
        "gtin": _as_text(_first(data, "gtin", "sku", "item")),
        "lot": _as_text(_first(data, "lot", "lotNumber", "batch")),
        "serial": _as_text(_first(data, "serial", "serialNumber")),
        "quantity": _as_number(_first(data, "quantity", "qty")),
        "expiry_date": _as_iso_date(_first(data, "exp", "expiryDate")),
        "container_id": _as_text(_first(data, "containerId")),
        "container_code": _as_text(_first(data, "containerCode")),
    }
    fields.update({name: value for name, value in normalized.items() if value is not None})
    return fields


def parse_barcode(raw: str) -> ParsedBarcode:
    """Parse a scanned string into a ParsedBarcode.

    Never raises for malformed input: a payload that cannot be decoded
    yields a result carrying only ``raw`` and ``format``.

    Args:
        raw: Raw barcode string, kept verbatim on the result

    Returns:
        ParsedBarcode with the fields the detected format carries

    Examples:
        >>> parse_barcode('{"sku":"SKU-1","lot":"L100","qty":5}').gtin
        'SKU-1'
        >>> parse_barcode("PART-88219").format
        <BarcodeFormat.CODE128: 'CODE128'>
    """
    barcode_format = detect_format(raw)

    try:
        if barcode_format is BarcodeFormat.GS1_128:
            fields = _parse_gs1(raw)
        elif barcode_format is BarcodeFormat.QR:
            fields = _parse_qr(raw)
        elif barcode_format is BarcodeFormat.EAN:
            fields = {"gtin": raw}
        else:
            fields = {}
    except Exception as e:
        logger.warning("barcode_parse_failed", format=barcode_format.value, error=str(e))
        fields = {}

    return ParsedBarcode(raw=raw, format=barcode_format, **fields)


def _iso_timestamp(moment: datetime) -> str:
    """UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _iso_day(value: date) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    return value.isoformat()


def generate_qr_payload(
    label_type: LabelType | str,
    org_id: str,
    item_sku: str | None = None,
    lot_number: str | None = None,
    batch_id: str | None = None,
    container_id: str | None = None,
    container_code: str | None = None,
    quantity: int | float | None = None,
    expiry_date: date | None = None,
    now: datetime | None = None,
) -> str:
    """Build the JSON payload encoded in label QR codes.

    Keys are emitted in a fixed order (``type, org, timestamp, item, lot,
    batch, containerId, containerCode, qty, exp``) and optional keys are
    left out when empty. Label printing and the scanner both depend on
    these key names.

    Args:
        label_type: One of item, lot, batch, container
        org_id: Owning organization
        item_sku: SKU of the labelled item
        lot_number: Lot number
        batch_id: Manufacturing batch identifier
        container_id: Container identifier
        container_code: Human-readable container code
        quantity: Quantity on the label
        expiry_date: Expiry, rendered as YYYY-MM-DD
        now: Generation time, defaults to the current UTC time

    Returns:
        Compact JSON string

    Raises:
        ValueError: If label_type is not a known label type
    """
    label_type = LabelType(label_type)
    generated_at = now or datetime.now(timezone.utc)

    payload: dict[str, Any] = {
        "type": label_type.value,
        "org": org_id,
        "timestamp": _iso_timestamp(generated_at),
    }

    optional = (
        ("item", item_sku),
        ("lot", lot_number),
        ("batch", batch_id),
        ("containerId", container_id),
        ("containerCode", container_code),
        ("qty", quantity),
    )
    for key, value in optional:
        if value:
            payload[key] = value

    if expiry_date:
        payload["exp"] = _iso_day(expiry_date)

    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
