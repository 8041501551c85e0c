"""Shared fixtures for lotscan tests."""

from __future__ import annotations

import pytest
import structlog

from lotscan.config import get_settings
from lotscan.lookup import InMemoryLookup
from lotscan.lookup.memory import Catalog
from lotscan.user import CurrentUser

ORG_ID = "org-1"
GS1_GTIN = "95012345678903"


def catalog_data() -> dict:
    """Items and lots in two orgs, containers in three states and three stored codes."""
    return {
        "items": [
            {"id": "item-1", "org_id": ORG_ID, "sku": "SKU-1", "name": "Citric acid"},
            {"id": "item-2", "org_id": ORG_ID, "sku": GS1_GTIN, "name": "Glycerin"},
            {"id": "item-3", "org_id": "org-2", "sku": "SKU-1", "name": "Other tenant"},
        ],
        "lots": [
            {"id": "lot-1", "org_id": ORG_ID, "item_id": "item-1", "lot_number": "L100"},
            {
                "id": "lot-2",
                "org_id": ORG_ID,
                "item_id": "item-2",
                "lot_number": "LOT42",
                "expiry_date": "2025-12-31",
            },
        ],
        "containers": [
            {
                "id": "cnt-1",
                "org_id": ORG_ID,
                "container_code": "CNT-2025-001",
                "status": "active",
                "item_id": "item-1",
                "lot_id": "lot-1",
                "current_net_weight": 24.5,
            },
            {
                "id": "cnt-2",
                "org_id": ORG_ID,
                "container_code": "CNT-2025-002",
                "status": "backstock",
                "item_id": "item-2",
                "lot_id": "lot-2",
            },
            {
                "id": "cnt-3",
                "org_id": ORG_ID,
                "container_code": "CNT-2025-003",
                "status": "empty",
                "item_id": "item-1",
                "lot_id": "lot-1",
            },
            {
                "id": "cnt-9",
                "org_id": "org-2",
                "container_code": "CNT-2025-001",
                "status": "active",
                "item_id": "item-3",
            },
        ],
        "barcodes": [
            {
                "id": "bc-1",
                "org_id": ORG_ID,
                "barcode_value": "PART-88219",
                "barcode_type": "CODE128",
                "item_id": "item-1",
            },
            {
                "id": "bc-2",
                "org_id": ORG_ID,
                "barcode_value": "LOTCODE-1",
                "barcode_type": "CODE128",
                "lot_id": "lot-1",
            },
            {
                "id": "bc-3",
                "org_id": ORG_ID,
                "barcode_value": "SUPPLIER-7731",
                "barcode_type": "CODE128",
                "container_id": "cnt-2",
            },
        ],
    }


@pytest.fixture(autouse=True)
def _reset_global_state(monkeypatch):
    """Isolate tests from the developer's environment and from each other."""
    for name in ("USER_EMAIL", "USER_NAME", "USER_ORG_ID", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def user() -> CurrentUser:
    return CurrentUser(email="operator@example.com", name="Operator", org_id=ORG_ID)


@pytest.fixture
def lookup() -> InMemoryLookup:
    return InMemoryLookup(Catalog.model_validate(catalog_data()))
