# tests/unit/test_fallback_cache.py
import asyncio

from app.domain.models import FallbackEntry, ProductRecord

RECORD = ProductRecord(name="Premium Leather Wallet", tag_id="fgthbnm")


def test_missing_tag(fallback):
    assert asyncio.run(fallback.get("nope")) is None


def test_mint_keeps_record_from_pin(fallback, redis_client):
    async def _run():
        # /pin writes the record, /mint later adds the serial
        await fallback.put(FallbackEntry(tag_id="fgthbnm", content_address="QmA", record=RECORD))
        await fallback.put(FallbackEntry(tag_id="fgthbnm", collection_id="0.0.7001",
                                         serial_number=3, content_address="QmA"))
        return await fallback.get("fgthbnm")

    entry = asyncio.run(_run())
    assert entry.serial_number == 3
    assert entry.collection_id == "0.0.7001"
    assert entry.record == RECORD
    assert redis_client.keys_matching("veritas:tag:*") == ["veritas:tag:fgthbnm"]


def test_new_address_drops_stale_record(fallback):
    async def _run():
        await fallback.put(FallbackEntry(tag_id="fgthbnm", content_address="QmA", record=RECORD))
        await fallback.put(FallbackEntry(tag_id="fgthbnm", serial_number=4, content_address="QmB"))
        return await fallback.get("fgthbnm")

    entry = asyncio.run(_run())
    assert entry.content_address == "QmB"
    assert entry.record is None


def test_last_writer_wins(fallback):
    async def _run():
        await fallback.put(FallbackEntry(tag_id="fgthbnm", serial_number=1, content_address="QmA"))
        await fallback.put(FallbackEntry(tag_id="fgthbnm", serial_number=2, content_address="QmA"))
        return await fallback.get("fgthbnm")

    assert asyncio.run(_run()).serial_number == 2
