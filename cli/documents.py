"""
Command line access to alerts and PDF documents.

    python -m cli.documents alerts
    python -m cli.documents contract <tenant_id> --template structured -o contrato.pdf
    python -m cli.documents room-ad <property_id> [room_id] --contact "600 000 000"

Without Supabase credentials the commands run against the seeded demo store.
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from rentals.alerts import LocalAlertService, pending_payment_count
from rentals.config import load_settings
from rentals.contract import ContractTemplate
from rentals.documents import DocumentService
from rentals.pdf_generator import PDFGenerator
from storage.factory import build_store


def _write(pdf: Optional[bytes], output: Path) -> int:
    if pdf is None:
        print("Document could not be generated (missing tenant, room or property).")
        return 1
    output.write_bytes(pdf)
    print(f"Wrote {len(pdf)} bytes to {output}")
    return 0


def run_alerts(store, now: Optional[datetime] = None) -> int:
    alerts = asyncio.run(LocalAlertService(store).generate_alerts(now))
    if not alerts:
        print("No alerts.")
        return 0
    for alert in alerts:
        print(f"[{alert.severity.name:<8}] {alert.property_name}: {alert.title} - {alert.message}")
    print(f"{pending_payment_count(alerts)} pending payment(s).")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rental Manager documents and alerts")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("alerts", help="List contract and unpaid-rent alerts.")

    contract = sub.add_parser("contract", help="Generate a tenant's rental contract.")
    contract.add_argument("tenant_id")
    contract.add_argument(
        "--template",
        "-t",
        choices=[t.value for t in ContractTemplate],
        default=None,
        help="Contract layout (defaults to CONTRACT_TEMPLATE).",
    )
    contract.add_argument("--output", "-o", type=Path, default=None)

    ad = sub.add_parser("room-ad", help="Generate a vacant room advertisement.")
    ad.add_argument("property_id")
    ad.add_argument("room_id", nargs="?", default=None, help="Defaults to the first vacant private room.")
    ad.add_argument("--contact", "-c", default=None, help="Contact line printed at the bottom.")
    ad.add_argument("--output", "-o", type=Path, default=None)
    return parser


def run_cli(argv: Optional[List[str]] = None, store=None, now: Optional[datetime] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = load_settings()
    store = store if store is not None else build_store(settings)

    if args.command == "alerts":
        return run_alerts(store, now)

    service = DocumentService(store, PDFGenerator(settings))
    if args.command == "contract":
        pdf = service.contract_for_tenant(args.tenant_id, template=args.template)
        return _write(pdf, args.output or Path(f"contrato_{args.tenant_id}.pdf"))
    pdf = service.room_ad(args.property_id, args.room_id, owner_contact=args.contact)
    return _write(pdf, args.output or Path(f"anuncio_{args.room_id or args.property_id}.pdf"))


if __name__ == "__main__":
    raise SystemExit(run_cli())
