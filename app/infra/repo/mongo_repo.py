# app/infra/repo/mongo_repo.py
from __future__ import annotations

import os
import datetime as dt
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.domain.ports import AuditRepoPort

MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DB_NAME   = os.getenv("MONGO_DB", "veritas")


class MongoAuditRepo(AuditRepoPort):
    """
    Append-only audit trail: `mints`, `lookups`, `transfers`.

    Not a source of truth. The ledger is authoritative for ownership and the
    pinned document for product data; this only records what the server did.
    """

    def __init__(self, db: Optional[AsyncIOMotorDatabase] = None) -> None:
        if db is None:
            self.client = AsyncIOMotorClient(MONGO_URI)
            db = self.client[DB_NAME]
        self.db = db

    # ──────────────────────────────────────────────────────────────
    #  Indexing
    # ──────────────────────────────────────────────────────────────
    async def ensure_indexes(self) -> None:
        await self.db.mints.create_index([("tag_id", ASCENDING), ("ts", DESCENDING)])
        await self.db.mints.create_index([("serial_number", ASCENDING)])
        await self.db.lookups.create_index([("tag_id", ASCENDING), ("ts", DESCENDING)])
        await self.db.transfers.create_index([("serial_number", ASCENDING), ("ts", DESCENDING)])

    # ──────────────────────────────────────────────────────────────
    #  Writes
    # ──────────────────────────────────────────────────────────────
    async def save_mint(self, tag_id: str, serial_number: int, transaction_id: str, content_address: str) -> None:
        await self.db.mints.insert_one({
            "tag_id": tag_id,
            "serial_number": serial_number,
            "transaction_id": transaction_id,
            "content_address": content_address,
            "ts": dt.datetime.now(dt.timezone.utc),
        })

    async def save_lookup(self, tag_id: str, status: str, serial_number: Optional[int] = None) -> None:
        await self.db.lookups.insert_one({
            "tag_id": tag_id,
            "status": status,
            "serial_number": serial_number,
            "ts": dt.datetime.now(dt.timezone.utc),
        })

    async def save_transfer(self, serial_number: int, to_account: str, transaction_id: str, status: str) -> None:
        await self.db.transfers.insert_one({
            "serial_number": serial_number,
            "to_account": to_account,
            "transaction_id": transaction_id,
            "status": status,
            "ts": dt.datetime.now(dt.timezone.utc),
        })
