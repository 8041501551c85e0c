"""Tests for src/lotscan/cli.py."""

import json

import pytest
from typer.testing import CliRunner

from conftest import catalog_data
from lotscan.cli import app

runner = CliRunner()


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog_data()), encoding="utf-8")
    return path


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "lotscan 0.1.0" in result.stdout


def test_validate_ok():
    result = runner.invoke(app, ["validate", "PART-88219"])

    assert result.exit_code == 0
    assert "Valid barcode input" in result.stdout


def test_validate_rejects_script_content():
    result = runner.invoke(app, ["validate", "<script>alert(1)</script>"])

    assert result.exit_code == 1
    assert "Invalid barcode content" in result.stdout


def test_validate_respects_configured_length(monkeypatch):
    monkeypatch.setenv("SCANNER_MAX_INPUT_LENGTH", "5")

    result = runner.invoke(app, ["validate", "PART-88219"])

    assert result.exit_code == 1
    assert "maximum length of 5" in result.stdout


def test_parse_shows_gs1_fields():
    result = runner.invoke(app, ["parse", "0195012345678903\x1d10LOT42"])

    assert result.exit_code == 0
    assert "GS1-128" in result.stdout
    assert "95012345678903" in result.stdout


def test_parse_qr_payload():
    result = runner.invoke(app, ["parse", '{"sku":"SKU-1","lot":"L100"}'])

    assert result.exit_code == 0
    assert "Format: QR" in result.stdout
    assert "SKU-1" in result.stdout
    assert "L100" in result.stdout


def test_qr_payload_outputs_json():
    result = runner.invoke(
        app,
        ["qr-payload", "lot", "--org", "org-1", "--item", "SKU-1", "--lot", "L100",
         "--qty", "5", "--exp", "2025-12-31"],
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["type"] == "lot"
    assert payload["org"] == "org-1"
    assert payload["item"] == "SKU-1"
    assert payload["lot"] == "L100"
    assert payload["qty"] == 5
    assert payload["exp"] == "2025-12-31"


def test_qr_payload_rejects_unknown_label_type():
    result = runner.invoke(app, ["qr-payload", "pallet", "--org", "org-1"])

    assert result.exit_code != 0


def test_resolve_exact_match(catalog_path):
    result = runner.invoke(
        app,
        ["resolve", "PART-88219", "-c", str(catalog_path),
         "--email", "operator@example.com", "--org", "org-1"],
    )

    assert result.exit_code == 0
    assert "resolved" in result.stdout
    assert "CREATE_LOT" in result.stdout
    assert "item-1" in result.stdout


def test_resolve_not_found_exits_zero(catalog_path):
    result = runner.invoke(
        app,
        ["resolve", "UNKNOWN-CODE", "-c", str(catalog_path),
         "--email", "operator@example.com", "--org", "org-1"],
    )

    assert result.exit_code == 0
    assert "NOT_FOUND" in result.stdout
    assert "CREATE_ITEM" in result.stdout


def test_resolve_without_user_is_denied(catalog_path):
    result = runner.invoke(app, ["resolve", "PART-88219", "-c", str(catalog_path)])

    assert result.exit_code == 1
    assert "PERMISSION_DENIED" in result.stdout


def test_resolve_with_audit(catalog_path):
    result = runner.invoke(
        app,
        ["resolve", "LOTCODE-1", "-c", str(catalog_path),
         "--email", "operator@example.com", "--org", "org-1", "--audit"],
    )

    assert result.exit_code == 0
    assert "scan_result" in result.stdout
    assert "operator@example.com" in result.stdout


def test_resolve_missing_catalog(tmp_path):
    result = runner.invoke(
        app,
        ["resolve", "PART-88219", "-c", str(tmp_path / "missing.json"),
         "--email", "operator@example.com", "--org", "org-1"],
    )

    assert result.exit_code == 1
    assert "Error loading catalog" in result.stdout


def test_resolve_container(catalog_path):
    result = runner.invoke(
        app,
        ["resolve", "CNT-2025-002", "-c", str(catalog_path), "--container",
         "--email", "operator@example.com", "--org", "org-1"],
    )

    assert result.exit_code == 0
    assert "MOVE_TO_PRODUCTION" in result.stdout
    assert "cnt-2" in result.stdout
