# app/services/session_state.py
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from app.domain.models import ScanSession
from app.infra.cache.redis_cache import RedisCache


class SessionStateService:
    """
    Scan sessions. The customer's account travels as an explicit ScanSession
    value (loaded from the X-Session-Id header), never as process-wide state.
    """
    def __init__(self, store: RedisCache):
        self.rs = store

    # ---- Session lifecycle ----
    async def create_session(self, account_id: str, display_name: Optional[str] = None) -> ScanSession:
        session = ScanSession(session_id=uuid.uuid4().hex, account_id=account_id, display_name=display_name)
        await self.rs.set_json(f"session:{session.session_id}", session.model_dump())
        await self.touch(session.session_id)
        return session

    async def get_session(self, session_id: Optional[str]) -> Optional[ScanSession]:
        if not session_id:
            return None
        raw = await self.rs.get_json(f"session:{session_id}")
        return ScanSession.model_validate(raw) if isinstance(raw, dict) else None

    async def touch(self, session_id: str):
        await self.rs.hset(f"session:{session_id}:meta", {
            "updated_at": datetime.now(timezone.utc).isoformat()
        })

    # ---- Verification (from /verify) ----
    async def save_verification(self, session_id: str, verification: dict):
        await self.rs.set_json(f"session:{session_id}:verification", verification)
        await self.rs.lpush_cap(f"session:{session_id}:scans", {
            "t": datetime.now(timezone.utc).isoformat(),
            "tag_id": verification.get("tagId"),
            "serial_number": (verification.get("token") or {}).get("serialNumber"),
        }, cap=30)
        await self.touch(session_id)

    async def get_verification(self, session_id: str) -> Optional[dict]:
        return await self.rs.get_json(f"session:{session_id}:verification")

    async def get_recent_scans(self, session_id: str, n: int = 10) -> List[Dict[str, Any]]:
        return await self.rs.lrange_json(f"session:{session_id}:scans", 0, n - 1)

    # ---- Snapshot (GET /session/{id}) ----
    async def get_context(self, session_id: str) -> Optional[dict]:
        """Session plus its last verification and recent scans; None when expired."""
        session = await self.get_session(session_id)
        if session is None:
            return None
        meta = await self.rs.hgetall(f"session:{session_id}:meta")
        return {
            **session.model_dump(),
            "updated_at": meta.get("updated_at"),
            "last_verification": await self.get_verification(session_id),
            "recent_scans": await self.get_recent_scans(session_id),
        }
