"""Inventory lookup layer for lotscan."""

from lotscan.lookup.base import DuplicateBarcodeError, Lookup, LookupStoreError
from lotscan.lookup.memory import InMemoryLookup
from lotscan.lookup.schemas import (
    BarcodeRecordRef,
    ContainerRef,
    IdentityMatch,
    ItemRef,
    LotRef,
)

__all__ = [
    "BarcodeRecordRef",
    "ContainerRef",
    "DuplicateBarcodeError",
    "IdentityMatch",
    "InMemoryLookup",
    "ItemRef",
    "Lookup",
    "LookupStoreError",
    "LotRef",
]
