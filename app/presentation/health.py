# app/presentation/health.py
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
import os
from app.container import get_audit, get_cache, get_ledger

router = APIRouter()


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "message": "Veritas API Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/healthz")
async def healthz():
    # Liveness: process is up
    return {"ok": True}


@router.get("/readyz")
async def readyz(cache=Depends(get_cache), audit=Depends(get_audit), ledger=Depends(get_ledger)):
    checks = {}; ok = True
    # Redis (fallback cache + sessions)
    try:
        pong = await cache.ping()
        checks["redis"] = bool(pong); ok = ok and bool(pong)
    except Exception as e:
        checks["redis"] = False; checks["redis_error"] = str(e); ok = False
    # Mongo (audit log)
    try:
        await audit.ensure_indexes()
        checks["mongo"] = True
    except Exception as e:
        checks["mongo"] = False; checks["mongo_error"] = str(e); ok = False
    # Ledger credentials + collection
    checks["ledger_configured"] = bool(getattr(ledger, "configured", False))
    checks["token_configured"] = bool(os.getenv("NFT_TOKEN_ID"))
    ok = ok and checks["ledger_configured"] and checks["token_configured"]
    # Pinning (only needed for /pin)
    checks["pinata_configured"] = bool(os.getenv("PINATA_JWT"))
    return {"ok": ok, **checks}
