# app/infra/cache/redis_cache.py
import os
import json
import logging
from typing import Any, Dict, List, Optional
import redis.asyncio as aioredis

logger = logging.getLogger("veritas.cache")

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
SESSION_TTL = int(os.getenv("SESSION_TTL_SECONDS", "172800"))  # 48h


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


class RedisCache:
    """
    JSON documents, hashes and capped lists over one Redis connection.

    Used by the tag fallback cache (`veritas:tag:*`, no expiry by default) and
    scan sessions (`session:*`, SESSION_TTL_SECONDS).
    """
    def __init__(self, client: Optional[aioredis.Redis] = None):
        self.r = client or aioredis.from_url(REDIS_URL, encoding="utf-8", decode_responses=True)

    @classmethod
    def from_env(cls):
        return cls(aioredis.from_url(os.getenv("REDIS_URL", REDIS_URL), encoding="utf-8", decode_responses=True))

    # ------- JSON documents -------
    async def get_json(self, key: str) -> Optional[Any]:
        raw = await self.r.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("[cache] %s holds non-JSON value, ignored", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: Optional[int] = SESSION_TTL):
        # ttl=None keeps the key until overwritten
        await self.r.set(key, _dumps(value), ex=ttl)

    # ------- Hashes (session meta) -------
    async def hset(self, key: str, mapping: Dict[str, Any], ttl: int = SESSION_TTL):
        if not mapping:
            return
        await self.r.hset(key, mapping=mapping)
        await self.r.expire(key, ttl)

    async def hgetall(self, key: str) -> Dict[str, str]:
        return await self.r.hgetall(key)

    # ------- Capped lists (recent scans) -------
    async def lpush_cap(self, key: str, item: Any, cap: int = 30, ttl: int = SESSION_TTL):
        await self.r.lpush(key, _dumps(item))
        await self.r.ltrim(key, 0, cap - 1)
        await self.r.expire(key, ttl)

    async def lrange_json(self, key: str, start: int = 0, end: int = 19) -> List[Any]:
        out: List[Any] = []
        for it in await self.r.lrange(key, start, end):
            try:
                out.append(json.loads(it))
            except ValueError:
                out.append({"_raw": it})
        return out

    async def ping(self) -> bool:
        return bool(await self.r.ping())
