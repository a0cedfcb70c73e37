"""Command line entry point for `python -m billingcore`."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List

import yaml

from billingcore.pricing.models import Invoice
from billingcore.pricing.records import (
    RecordError,
    load_record_file,
    parse_bill,
    parse_catalog,
    parse_credit_note,
    parse_invoice,
)
from billingcore.pricing.reports import vat_summary
from billingcore.pricing.settlement import invoice_balance, invoice_status
from billingcore.pricing.totals import compute_totals, format_amount
from billingcore.utils.config import (
    DEFAULT_CONFIG_NAME,
    EngineSettings,
    deep_get,
    deep_set,
    load_yaml,
    save_yaml,
    settings_from_config,
)
from billingcore.utils.forensic_context import forensic_scope, new_correlation_id
from billingcore.utils.logging_setup import log_event, setup_logging


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="billingcore")
    ap.add_argument("--config", default=DEFAULT_CONFIG_NAME)
    sub = ap.add_subparsers(dest="command", required=True)

    ap_totals = sub.add_parser("totals", help="subtotal, tax and grand total of a document record")
    ap_totals.add_argument("record", type=Path)

    ap_balance = sub.add_parser("balance", help="settlement of an invoice record")
    ap_balance.add_argument("record", type=Path)

    ap_vat = sub.add_parser("vat-report", help="VAT payable / reclaimable over a period")
    ap_vat.add_argument("record", type=Path)
    ap_vat.add_argument("--start")
    ap_vat.add_argument("--end")

    ap_init = sub.add_parser("init-config", help="write a config file with the billing defaults")
    ap_init.add_argument("--default-vat-rate", type=float)
    ap_init.add_argument("--currency-symbol")
    return ap


def _finalized_invoice(rec: Dict[str, Any], settings: EngineSettings, catalog) -> Invoice:
    invoice = parse_invoice(rec, settings)
    if rec.get("grand_total") is None and rec.get("total") is None:
        invoice = replace(invoice, grand_total=compute_totals(invoice.line_items, catalog, invoice.tax_mode).grand_total)
    return invoice


def _cmd_totals(data: Dict[str, Any], settings: EngineSettings, log) -> List[str]:
    catalog = parse_catalog(data.get("catalog"))
    doc = parse_invoice(data.get("document") or {}, settings)
    with forensic_scope(document_id=doc.id, tax_mode=doc.tax_mode.value, phase="totals"):
        totals = compute_totals(doc.line_items, catalog, doc.tax_mode)
        log_event(
            log,
            "totals.computed",
            "Document totals computed",
            lines=len(doc.line_items),
            subtotal=totals.subtotal,
            tax_total=totals.tax_total,
            grand_total=totals.grand_total,
        )
    sym = settings.currency_symbol
    return [
        f"Subtotal:    {format_amount(totals.subtotal, sym)}",
        f"Tax:         {format_amount(totals.tax_total, sym)}",
        f"Grand total: {format_amount(totals.grand_total, sym)}",
    ]


def _cmd_balance(data: Dict[str, Any], settings: EngineSettings, log) -> List[str]:
    catalog = parse_catalog(data.get("catalog"))
    invoice = _finalized_invoice(dict(data.get("invoice") or {}), settings, catalog)
    credit_notes = [parse_credit_note(r, settings) for r in (data.get("credit_notes") or [])]
    with forensic_scope(document_id=invoice.id, document_kind="invoice", phase="settlement"):
        bal = invoice_balance(invoice, credit_notes)
        status = invoice_status(invoice, credit_notes)
        log_event(
            log,
            "settlement.computed",
            "Invoice balance computed",
            total_paid=bal.total_paid,
            total_credited=bal.total_credited,
            amount_due=bal.amount_due,
            status=status.value,
        )
    sym = settings.currency_symbol
    return [
        f"Total:       {format_amount(invoice.grand_total, sym)}",
        f"Paid:        {format_amount(bal.total_paid, sym)}",
        f"Credited:    {format_amount(bal.total_credited, sym)}",
        f"Amount due:  {format_amount(bal.amount_due, sym)}",
        f"Status:      {status.value}",
    ]


def _cmd_vat_report(data: Dict[str, Any], settings: EngineSettings, log, start, end) -> List[str]:
    catalog = parse_catalog(data.get("catalog"))
    invoices = [parse_invoice(r, settings) for r in (data.get("invoices") or [])]
    credit_notes = [parse_credit_note(r, settings) for r in (data.get("credit_notes") or [])]
    bills = [parse_bill(r) for r in (data.get("bills") or [])]
    with forensic_scope(phase="vat-report"):
        summary = vat_summary(invoices, credit_notes, bills, catalog, start=start, end=end)
        log_event(
            log,
            "vat.summary",
            "VAT summary computed",
            invoices=len(invoices),
            credit_notes=len(credit_notes),
            bills=len(bills),
            net_vat_position=summary.net_vat_position,
        )
    sym = settings.currency_symbol
    return [
        f"VAT payable:      {format_amount(summary.vat_payable, sym)}",
        f"VAT reclaimable:  {format_amount(summary.vat_reclaimable, sym)}",
        f"Net VAT position: {format_amount(summary.net_vat_position, sym)}",
    ]


def main(argv: List[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config_path = Path(args.config)
    cfg = load_yaml(config_path)

    if args.command == "init-config":
        cfg.setdefault("billing", {})
        if args.default_vat_rate is not None:
            deep_set(cfg, ["billing", "default_vat_rate"], args.default_vat_rate)
        if args.currency_symbol is not None:
            deep_set(cfg, ["billing", "currency_symbol"], args.currency_symbol)
        settings = settings_from_config(cfg)
        deep_set(cfg, ["billing", "default_vat_rate"], settings.default_vat_rate)
        deep_set(cfg, ["billing", "currency_symbol"], settings.currency_symbol)
        save_yaml(config_path, cfg)
        print(f"Wrote {config_path}")
        return 0

    settings = settings_from_config(cfg)
    log_dir = Path(deep_get(cfg, ["app", "log_dir"], None) or (Path.cwd() / "LOG"))
    log = setup_logging(log_dir, name="billingcore.cli")

    with forensic_scope(correlation_id=new_correlation_id()):
        try:
            data = load_record_file(args.record)
            if args.command == "totals":
                out = _cmd_totals(data, settings, log)
            elif args.command == "balance":
                out = _cmd_balance(data, settings, log)
            else:
                out = _cmd_vat_report(data, settings, log, args.start, args.end)
        except (RecordError, yaml.YAMLError, OSError) as exc:
            log.error("Invalid record file %s: %s", args.record, exc)
            print(f"error: {exc}", file=sys.stderr)
            return 2

    print("\n".join(out))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
