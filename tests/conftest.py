# tests/conftest.py
# In-memory test doubles injected at the port boundary.
import base64
import fnmatch
from typing import Any, Dict, List, Optional

import pytest

from app.domain.errors import ContentStoreUnreachable, LedgerRejected, NotFound
from app.domain.models import MintReceipt, MintedToken, ProductRecord, ProvenanceEvent, TransferReceipt
from app.domain.ports import (
    AuditRepoPort, ContentStorePort, FetchedDocument, LedgerPort, PinningPort,
)
from app.infra.cache.redis_cache import RedisCache
from app.services.fallback_cache import FallbackCacheService
from app.services.session_state import SessionStateService

COLLECTION = "0.0.7001"
TREASURY = "0.0.5770350"


class FakeRedis:
    """Subset of redis.asyncio.Redis used by RedisCache (decode_responses=True)."""

    def __init__(self):
        self.kv: Dict[str, str] = {}
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.lists: Dict[str, List[str]] = {}
        self.ttls: Dict[str, Optional[int]] = {}

    async def get(self, k):
        return self.kv.get(k)

    async def set(self, k, v, ex=None):
        self.kv[k] = v
        self.ttls[k] = ex

    async def hset(self, k, mapping):
        self.hashes.setdefault(k, {}).update({a: str(b) for a, b in mapping.items()})

    async def hgetall(self, k):
        return dict(self.hashes.get(k, {}))

    async def lpush(self, k, v):
        self.lists.setdefault(k, []).insert(0, v)

    async def ltrim(self, k, start, end):
        self.lists[k] = self.lists.get(k, [])[start:end + 1]

    async def lrange(self, k, start, end):
        return self.lists.get(k, [])[start:end + 1]

    async def expire(self, k, ttl):
        self.ttls[k] = ttl

    async def ping(self):
        return True

    def keys_matching(self, pattern):
        return sorted(k for k in self.kv if fnmatch.fnmatch(k, pattern))


class FakeLedger(LedgerPort):
    def __init__(self):
        self.tokens: List[tuple] = []
        self.transfers: List[tuple] = []
        self.history: List[ProvenanceEvent] = []
        self.query_error: Optional[Exception] = None
        self.mint_error: Optional[Exception] = None
        self.mint_calls = 0

    def add(self, pointer: bytes | str, owner: str = TREASURY) -> MintedToken:
        raw = pointer.encode("utf-8") if isinstance(pointer, str) else pointer
        token = MintedToken(collection_id=COLLECTION, serial_number=len(self.tokens) + 1, owner_account_id=owner)
        self.tokens.append((token, raw))
        return token

    async def mint(self, collection_id, pointer):
        self.mint_calls += 1
        if self.mint_error:
            raise self.mint_error
        token = self.add(pointer)
        return MintReceipt(serial_number=token.serial_number, transaction_id=f"{TREASURY}@1761348452.{token.serial_number:09d}")

    async def transfer(self, collection_id, serial_number, from_account, to_account):
        if serial_number > len(self.tokens):
            raise LedgerRejected("INVALID_NFT_ID", status="INVALID_NFT_ID")
        self.transfers.append((collection_id, serial_number, from_account, to_account))
        return TransferReceipt(transaction_id=f"{from_account}@1761364200.000000000", status="SUCCESS")

    async def query_tokens(self, collection_id):
        if self.query_error:
            raise self.query_error
        return list(self.tokens)

    async def get_token(self, collection_id, serial_number):
        for token, raw in self.tokens:
            if token.serial_number == serial_number:
                return {
                    "token_id": collection_id,
                    "serial_number": serial_number,
                    "account_id": token.owner_account_id,
                    "metadata": base64.b64encode(raw).decode("ascii"),
                }
        raise NotFound(f"no nft {collection_id}/{serial_number}")

    async def token_history(self, collection_id, serial_number):
        return list(self.history)


class FakeContentStore(ContentStorePort):
    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.fetched: List[str] = []

    async def fetch(self, content_address):
        self.fetched.append(content_address)
        doc = self.docs.get(content_address)
        if doc is None:
            raise ContentStoreUnreachable(
                content_address, [{"endpoint": "https://fake-gateway/ipfs/", "ok": False, "error": "404 Not Found"}]
            )
        return FetchedDocument(ProductRecord.from_document(doc), "https://fake-gateway/ipfs/", [])


class FakePinning(PinningPort):
    def __init__(self):
        self.pinned: Dict[str, Dict[str, Any]] = {}

    async def pin(self, document, name=None):
        cid = f"QmFake{len(self.pinned) + 1}"
        self.pinned[cid] = document
        return cid

    def gateway_url(self, content_address):
        return f"https://gateway.test/ipfs/{content_address}"


class FakeAudit(AuditRepoPort):
    def __init__(self):
        self.mints, self.lookups, self.transfers = [], [], []

    async def ensure_indexes(self):
        return None

    async def save_mint(self, tag_id, serial_number, transaction_id, content_address):
        self.mints.append((tag_id, serial_number, transaction_id, content_address))

    async def save_lookup(self, tag_id, status, serial_number=None):
        self.lookups.append((tag_id, status, serial_number))

    async def save_transfer(self, serial_number, to_account, transaction_id, status):
        self.transfers.append((serial_number, to_account, transaction_id, status))


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def cache(redis_client):
    return RedisCache(redis_client)


@pytest.fixture
def fallback(cache):
    return FallbackCacheService(cache)


@pytest.fixture
def sessions(cache):
    return SessionStateService(cache)


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def store():
    return FakeContentStore()


@pytest.fixture
def pinning():
    return FakePinning()


@pytest.fixture
def audit():
    return FakeAudit()
