# /scripts/cli_flow_check.py
"""
End-to-end check against a running server: pin -> mint -> verify -> (transfer).

    python -m scripts.cli_flow_check --tag fgthbnm --name "Premium Leather Wallet"
    python -m scripts.cli_flow_check --tag fgthbnm --cid QmAbc123 --skip-pin
    python -m scripts.cli_flow_check --tag fgthbnm --claim-as 0.0.789012
"""
from __future__ import annotations
import argparse, json, os, sys, time

from clients.veritas_client import VeritasApiError, VeritasClient


def print_step(title):
    print(f"\n=== {title} ===")


def pretty(o, indent=2):
    return json.dumps(o, indent=indent, ensure_ascii=False)


def timed(fn, *a, **kw):
    t0 = time.perf_counter()
    try:
        out = fn(*a, **kw)
    except VeritasApiError as e:
        print(f"HTTP {e.status_code} {e.error}: {e.message}")
        sys.exit(1)
    print(f"OK in {(time.perf_counter() - t0) * 1000:.0f} ms")
    return out


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--base", default=os.getenv("VERITAS_BASE", "http://localhost:3002"))
    ap.add_argument("--api-key", default=os.getenv("SERVICE_API_KEY"))
    ap.add_argument("--tag", required=True, help="NFC tag serial id")
    ap.add_argument("--cid", help="existing content address (skips pinning)")
    ap.add_argument("--skip-pin", action="store_true")
    ap.add_argument("--name", default="Premium Leather Wallet")
    ap.add_argument("--category", default="Accessories")
    ap.add_argument("--manufacturer", default="Veritas Corp")
    ap.add_argument("--serial-number", default="SN-2025-001234")
    ap.add_argument("--claim-as", help="customer account id to transfer the token to")
    args = ap.parse_args()

    cli = VeritasClient(args.base, api_key=args.api_key)

    print_step("HEALTH /health")
    print(pretty(timed(cli.health)))

    cid = args.cid
    product = {
        "name": args.name,
        "category": args.category,
        "manufacturer": args.manufacturer,
        "serialNumber": args.serial_number,
    }
    if not cid and not args.skip_pin:
        print_step("PIN /pin")
        pinned = timed(cli.pin, product_data=product, tag_id=args.tag)
        cid = pinned["contentAddress"]
        print("cid:", cid, "|", pinned.get("gatewayUrl"))
    if not cid:
        print("no content address; pass --cid or drop --skip-pin")
        sys.exit(2)

    print_step("MINT /mint")
    minted = timed(cli.mint, tag_id=args.tag, content_address=cid, product_data=product)
    print("serial:", minted["serialNumber"], "| tx:", minted["transactionId"])
    print("pointer:", minted["pointer"], "|", minted["explorerUrl"])

    print_step("VERIFY /verify")
    session_id = None
    if args.claim_as:
        session_id = timed(cli.login, account_id=args.claim_as)["sessionId"]
    found = timed(cli.verify, tag_id=args.tag, session_id=session_id)
    rec = found.get("record") or {}
    print("serial:", found["token"]["serialNumber"], "| provenance:", found["provenance"],
          "| rule:", found["matchedBy"])
    print("product:", rec.get("name"), "| unreachable:", found["documentUnreachable"])
    for ev in found.get("history") or []:
        print(f"  {ev.get('timestamp')}  {ev.get('type'):<9} {ev.get('from')} -> {ev.get('to')}")

    if args.claim_as:
        print_step("TRANSFER /transfer")
        res = timed(cli.transfer, session_id=session_id, serial_number=int(found["token"]["serialNumber"]))
        print("status:", res["status"], "| new owner:", res["newOwner"], "|", res["transactionUrl"])


if __name__ == "__main__":
    main()
