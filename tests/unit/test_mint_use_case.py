# tests/unit/test_mint_use_case.py
import asyncio

import pytest

from app.application.commands import MintProductCommand, PinProductCommand
from app.application.mint_use_case import MintProductUseCase, PinProductUseCase
from app.domain.errors import LedgerRejected, LedgerUnavailable, PointerTooLarge, ValidationError

COLLECTION = "0.0.7001"
PRODUCT = {"name": "Premium Leather Wallet", "category": "Accessories", "serialNumber": "SN-2025-001234"}


def _mint_uc(ledger, fallback, audit, pinning=None, collection_id=COLLECTION):
    return MintProductUseCase(ledger=ledger, fallback=fallback, audit=audit,
                              collection_id=collection_id, pinning=pinning)


def test_mint_writes_pointer_and_fallback(ledger, fallback, audit, pinning):
    out = asyncio.run(_mint_uc(ledger, fallback, audit, pinning).execute(
        MintProductCommand(tag_id="fgthbnm", content_address="QmAbc123", product_data=PRODUCT)))

    assert out["success"] is True
    assert out["serialNumber"] == 1
    assert out["pointer"] == "fgthbnm:QmAbc123"
    assert out["explorerUrl"].endswith(f"/token/{COLLECTION}/1")
    assert ledger.tokens[0][1] == b"fgthbnm:QmAbc123"

    entry = asyncio.run(fallback.get("fgthbnm"))
    assert (entry.serial_number, entry.content_address) == (1, "QmAbc123")
    assert entry.record.name == "Premium Leather Wallet"
    assert audit.mints == [("fgthbnm", 1, out["transactionId"], "QmAbc123")]


@pytest.mark.parametrize("tag,cid", [(None, "QmAbc123"), ("fgthbnm", None), ("", "")])
def test_missing_fields(ledger, fallback, audit, tag, cid):
    with pytest.raises(ValidationError) as ei:
        asyncio.run(_mint_uc(ledger, fallback, audit).execute(MintProductCommand(tag_id=tag, content_address=cid)))
    assert "tagId and contentAddress" in ei.value.message
    assert ledger.mint_calls == 0


def test_oversized_pointer_never_reaches_ledger(ledger, fallback, audit):
    with pytest.raises(PointerTooLarge):
        asyncio.run(_mint_uc(ledger, fallback, audit).execute(
            MintProductCommand(tag_id="t" * 90, content_address="Q" * 46)))
    assert ledger.mint_calls == 0


def test_unconfigured_collection(ledger, fallback, audit):
    with pytest.raises(LedgerUnavailable):
        asyncio.run(_mint_uc(ledger, fallback, audit, collection_id=None).execute(
            MintProductCommand(tag_id="fgthbnm", content_address="QmAbc123")))


def test_ledger_rejection_is_surfaced_once(ledger, fallback, audit):
    ledger.mint_error = LedgerRejected("TOKEN_MAX_SUPPLY_REACHED", status="TOKEN_MAX_SUPPLY_REACHED")
    with pytest.raises(LedgerRejected):
        asyncio.run(_mint_uc(ledger, fallback, audit).execute(
            MintProductCommand(tag_id="fgthbnm", content_address="QmAbc123")))
    assert ledger.mint_calls == 1
    assert asyncio.run(fallback.get("fgthbnm")) is None
    assert audit.mints == []


def test_pin_normalises_and_caches(pinning, fallback):
    out = asyncio.run(PinProductUseCase(pinning, fallback).execute(
        PinProductCommand(product_data={"productName": "Bag", "category": "Accessories"}, tag_id="tag-9")))

    assert out["contentAddress"] == "QmFake1"
    assert out["record"]["tagId"] == "tag-9"
    assert out["record"]["timestamp"]
    assert pinning.pinned["QmFake1"]["name"] == "Bag"
    entry = asyncio.run(fallback.get("tag-9"))
    assert entry.content_address == "QmFake1"
    assert entry.serial_number is None


@pytest.mark.parametrize("data,tag", [(None, "tag-9"), ({"category": "x"}, "tag-9"), ({"name": "Bag"}, None)])
def test_pin_requires_name_and_tag(pinning, fallback, data, tag):
    with pytest.raises(ValidationError):
        asyncio.run(PinProductUseCase(pinning, fallback).execute(PinProductCommand(product_data=data, tag_id=tag)))
    assert pinning.pinned == {}
