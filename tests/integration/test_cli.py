from __future__ import annotations

import json
from pathlib import Path

import yaml

from billingcore.__main__ import main


def _config(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump({"app": {"log_dir": str(tmp_path / "LOG")}, "billing": {"currency_symbol": "£"}}),
        encoding="utf-8",
    )
    return path


def test_totals_command(tmp_path: Path, capsys) -> None:
    record = tmp_path / "quote.yaml"
    record.write_text(
        yaml.safe_dump(
            {
                "catalog": [{"id": "vinyl", "type": "measured", "price": 10, "measurement_unit": "sq_m"}],
                "document": {
                    "id": "q-1",
                    "tax_mode": "exclusive",
                    "line_items": [
                        {
                            "id": "l1",
                            "catalog_item_id": "vinyl",
                            "length": 2,
                            "width": 5,
                            "unit": "m",
                            "quantity": 2,
                            "vat_rate": 20,
                            "discount": {"type": "percentage", "value": 10},
                        }
                    ],
                },
            }
        ),
        encoding="utf-8",
    )
    assert main(["--config", str(_config(tmp_path)), "totals", str(record)]) == 0
    out = capsys.readouterr().out
    assert "Subtotal:    £180.00" in out
    assert "Tax:         £36.00" in out
    assert "Grand total: £216.00" in out


def test_balance_command_computes_missing_total(tmp_path: Path, capsys) -> None:
    record = tmp_path / "invoice.json"
    record.write_text(
        json.dumps(
            {
                "invoice": {
                    "id": "inv-1",
                    "taxMode": "none",
                    "lineItems": [{"id": "l1", "price": 100, "quantity": 1}],
                    "payments": [{"amount": 70}],
                },
                "credit_notes": [{"id": "cn-1", "total": 30, "applications": [{"invoiceId": "inv-1", "amount": 30}]}],
            }
        ),
        encoding="utf-8",
    )
    assert main(["--config", str(_config(tmp_path)), "balance", str(record)]) == 0
    out = capsys.readouterr().out
    assert "Total:       £100.00" in out
    assert "Amount due:  £0.00" in out
    assert "Status:      paid" in out


def test_vat_report_command(tmp_path: Path, capsys) -> None:
    record = tmp_path / "period.yaml"
    record.write_text(
        yaml.safe_dump(
            {
                "invoices": [{"id": "i1", "issue_date": "2024-02-10", "line_items": [{"id": "l", "price": 100, "quantity": 1}]}],
                "bills": [
                    {
                        "id": "b1",
                        "issue_date": "2024-02-11",
                        "line_items": [{"id": "p", "quantity": 1, "unit_price": 50, "vat_rate": 20}],
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    args = ["--config", str(_config(tmp_path)), "vat-report", str(record), "--start", "2024-02-01", "--end", "2024-02-29"]
    assert main(args) == 0
    out = capsys.readouterr().out
    assert "VAT payable:      £20.00" in out
    assert "VAT reclaimable:  £10.00" in out


def test_record_error_exit_code(tmp_path: Path, capsys) -> None:
    record = tmp_path / "bad.yaml"
    record.write_text("- not\n- a mapping\n", encoding="utf-8")
    assert main(["--config", str(_config(tmp_path)), "totals", str(record)]) == 2
    assert "error:" in capsys.readouterr().err


def test_init_config_writes_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    assert main(["--config", str(path), "init-config", "--default-vat-rate", "21"]) == 0
    cfg = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert cfg["billing"] == {"default_vat_rate": 21.0, "currency_symbol": "£"}


def test_malformed_or_missing_record_exits_with_error(tmp_path: Path, capsys) -> None:
    config = str(_config(tmp_path))
    broken = tmp_path / "broken.yaml"
    broken.write_text("document: [unclosed\n", encoding="utf-8")
    assert main(["--config", config, "totals", str(broken)]) == 2
    assert main(["--config", config, "balance", str(tmp_path / "missing.yaml")]) == 2
    assert capsys.readouterr().err.count("error:") == 2
