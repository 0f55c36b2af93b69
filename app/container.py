# app/container.py
import os
from functools import lru_cache

from app.infra.cache.redis_cache import RedisCache
from app.infra.ipfs.gateway_store import GatewayContentStore
from app.infra.ipfs.pinata_adapter import PinataPinningService
from app.infra.repo.mongo_repo import MongoAuditRepo

from app.services.fallback_cache import FallbackCacheService
from app.services.session_state import SessionStateService

from app.application.mint_use_case import MintProductUseCase, PinProductUseCase
from app.application.verify_use_case import VerifyTagUseCase
from app.application.transfer_use_case import TransferOwnershipUseCase
from app.application.token_use_case import TokenLookupUseCase

NFT_TOKEN_ID = os.getenv("NFT_TOKEN_ID")


@lru_cache
def _cache() -> RedisCache: return RedisCache.from_env()

@lru_cache
def _audit() -> MongoAuditRepo: return MongoAuditRepo()

@lru_cache
def _content_store() -> GatewayContentStore: return GatewayContentStore()

@lru_cache
def _pinning() -> PinataPinningService: return PinataPinningService()

@lru_cache
def _ledger():
    # SDK import deferred so read-only tooling does not need the gRPC stack loaded
    from app.infra.ledger.hedera_adapter import HederaLedger
    return HederaLedger()

@lru_cache
def _fallback() -> FallbackCacheService: return FallbackCacheService(_cache())

@lru_cache
def _session() -> SessionStateService: return SessionStateService(_cache())


def get_pin_uc() -> PinProductUseCase:
    return PinProductUseCase(pinning=_pinning(), fallback=_fallback())

def get_mint_uc() -> MintProductUseCase:
    return MintProductUseCase(
        ledger=_ledger(),
        fallback=_fallback(),
        audit=_audit(),
        collection_id=NFT_TOKEN_ID,
        pinning=_pinning(),
    )

def get_verify_uc() -> VerifyTagUseCase:
    return VerifyTagUseCase(
        ledger=_ledger(),
        content_store=_content_store(),
        fallback=_fallback(),
        audit=_audit(),
        collection_id=NFT_TOKEN_ID,
        pinning=_pinning(),
    )

def get_transfer_uc() -> TransferOwnershipUseCase:
    return TransferOwnershipUseCase(
        ledger=_ledger(),
        audit=_audit(),
        collection_id=NFT_TOKEN_ID,
        treasury_account_id=_ledger().treasury_id,
    )

def get_token_uc() -> TokenLookupUseCase:
    return TokenLookupUseCase(ledger=_ledger())

def get_session_state() -> SessionStateService: return _session()
def get_cache() -> RedisCache: return _cache()
def get_audit() -> MongoAuditRepo: return _audit()
def get_ledger(): return _ledger()
