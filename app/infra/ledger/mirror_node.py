# app/infra/ledger/mirror_node.py
from __future__ import annotations

import datetime as dt
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import httpx

from app.domain.codec import decode_metadata
from app.domain.errors import LedgerUnavailable, NotFound
from app.domain.models import MintedToken, ProvenanceEvent

logger = logging.getLogger("veritas.ledger")

HEDERA_NETWORK = os.getenv("HEDERA_NETWORK", "testnet")
MIRROR_NODE_URL = os.getenv("MIRROR_NODE_URL", f"https://{HEDERA_NETWORK}.mirrornode.hedera.com")
MIRROR_TIMEOUT = float(os.getenv("MIRROR_TIMEOUT", "10"))
PAGE_LIMIT = 100
# 100 NFTs per page; set higher for large collections
MAX_PAGES = int(os.getenv("MIRROR_MAX_PAGES", "50"))

# mirror node transaction type -> provenance event type
_EVENT_TYPES = {
    "TOKENMINT": "MINT",
    "CRYPTOTRANSFER": "TRANSFER",
    "TOKENBURN": "BURN",
    "TOKENWIPE": "WIPE",
}


def consensus_to_iso(ts: Optional[str]) -> Optional[str]:
    """'1761348452.000000000' -> ISO-8601 UTC."""
    if not ts:
        return None
    try:
        secs = float(ts)
    except ValueError:
        return ts
    return dt.datetime.fromtimestamp(secs, tz=dt.timezone.utc).isoformat()


class MirrorNodeClient:
    """Read-only ledger queries over the mirror node REST API."""

    def __init__(self, base_url: str = MIRROR_NODE_URL, timeout: float = MIRROR_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None, max_pages: int = MAX_PAGES):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.max_pages = max_pages

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _get(self, client: httpx.AsyncClient, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            res = await client.get(path, params=params)
        except httpx.HTTPError as e:
            raise LedgerUnavailable(f"Mirror node request failed: {e}") from e
        if res.status_code == 404:
            raise NotFound(f"Mirror node has no record at {path}")
        if res.status_code >= 400:
            raise LedgerUnavailable(f"Mirror node returned {res.status_code} for {path}")
        try:
            return res.json()
        except ValueError as e:
            raise LedgerUnavailable(f"Mirror node returned non-JSON body for {path}") from e

    async def list_nfts(self, token_id: str) -> List[Tuple[MintedToken, bytes]]:
        out: List[Tuple[MintedToken, bytes]] = []
        path: Optional[str] = f"/api/v1/tokens/{token_id}/nfts"
        params: Optional[Dict[str, Any]] = {"order": "asc", "limit": PAGE_LIMIT}
        async with self._client() as client:
            for _ in range(self.max_pages):
                if not path:
                    break
                body = await self._get(client, path, params)
                for nft in body.get("nfts") or []:
                    token = MintedToken(
                        collection_id=nft.get("token_id") or token_id,
                        serial_number=int(nft["serial_number"]),
                        owner_account_id=nft.get("account_id"),
                        created_at=consensus_to_iso(nft.get("created_timestamp")),
                    )
                    out.append((token, decode_metadata(nft.get("metadata"))))
                # links.next already carries the query string
                path, params = (body.get("links") or {}).get("next"), None

        if path:
            logger.warning("[mirror] token=%s listing stopped after %d page(s) (%d nfts), more remain; "
                           "raise MIRROR_MAX_PAGES", token_id, self.max_pages, len(out))
        logger.info("[mirror] token=%s nfts=%d", token_id, len(out))
        return out

    async def get_nft(self, token_id: str, serial_number: int) -> Dict[str, Any]:
        async with self._client() as client:
            return await self._get(client, f"/api/v1/tokens/{token_id}/nfts/{serial_number}")

    async def nft_history(self, token_id: str, serial_number: int) -> List[ProvenanceEvent]:
        async with self._client() as client:
            body = await self._get(
                client,
                f"/api/v1/tokens/{token_id}/nfts/{serial_number}/transactions",
                {"order": "asc"},
            )
        events = []
        for tx in body.get("transactions") or []:
            kind = str(tx.get("type") or "").upper()
            events.append(ProvenanceEvent(
                type=_EVENT_TYPES.get(kind, kind or "UNKNOWN"),
                timestamp=consensus_to_iso(tx.get("consensus_timestamp")),
                from_account=tx.get("sender_account_id"),
                to_account=tx.get("receiver_account_id"),
                transaction_id=tx.get("transaction_id"),
            ))
        return events
