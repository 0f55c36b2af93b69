# app/services/fallback_cache.py
import os
import logging
from typing import Optional

from app.domain.models import FallbackEntry
from app.domain.ports import FallbackCachePort
from app.infra.cache.redis_cache import RedisCache

logger = logging.getLogger("veritas.fallback")

# 0 = keep entries until overwritten
FALLBACK_TTL = int(os.getenv("FALLBACK_TTL_SECONDS", "0"))


class FallbackCacheService(FallbackCachePort):
    """Last-known mint per tag id. Written by the mint flow, read by resolution."""

    def __init__(self, store: RedisCache, ttl: int = FALLBACK_TTL):
        self.rs = store
        self.ttl = ttl or None

    @staticmethod
    def key(tag_id: str) -> str:
        return f"veritas:tag:{tag_id}"

    async def get(self, tag_id: str) -> Optional[FallbackEntry]:
        raw = await self.rs.get_json(self.key(tag_id))
        if not isinstance(raw, dict):
            return None
        return FallbackEntry.model_validate(raw)

    async def put(self, entry: FallbackEntry) -> None:
        # read-modify-write: keep fields the new writer does not know (e.g. record from /pin)
        current = await self.get(entry.tag_id)
        merged = entry
        if current is not None:
            updates = {k: v for k, v in entry.model_dump().items() if v is not None}
            merged = current.model_copy(update=updates)
            if entry.record is not None:
                merged = merged.model_copy(update={"record": entry.record})
            elif entry.content_address and entry.content_address != current.content_address:
                # cached record belongs to another document
                merged = merged.model_copy(update={"record": None})
        await self.rs.set_json(self.key(entry.tag_id), merged.model_dump(mode="json"), ttl=self.ttl)
        logger.info("[fallback] tag=%s serial=%s cid=%s", merged.tag_id, merged.serial_number, merged.content_address)
