# app/application/verify_use_case.py
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from app.application.commands import VerifyTagCommand
from app.application.links import explorer_url
from app.domain.errors import LedgerUnavailable, NotFound, VeritasError
from app.domain.models import ProvenanceEvent, ResolutionResult, StrategyOutcome, utc_now_iso
from app.domain.ports import AuditRepoPort, ContentStorePort, FallbackCachePort, LedgerPort, PinningPort
from app.domain.resolver import TagResolver

logger = logging.getLogger("veritas.verify")

# substring matching of legacy free-text pointers; can false-positive on prefix tag ids
FUZZY_MATCH_DEFAULT = os.getenv("RESOLVER_FUZZY_MATCH", "1") == "1"


class VerifyTagUseCase:
    def __init__(
        self,
        ledger: LedgerPort,
        content_store: ContentStorePort,
        fallback: FallbackCachePort,
        audit: AuditRepoPort,
        collection_id: Optional[str],
        pinning: Optional[PinningPort] = None,
        fuzzy_default: bool = FUZZY_MATCH_DEFAULT,
    ):
        self.ledger = ledger
        self.store = content_store
        self.fallback = fallback
        self.audit = audit
        self.collection_id = collection_id
        self.pinning = pinning
        self.fuzzy_default = fuzzy_default

    async def execute(self, cmd: VerifyTagCommand) -> Dict[str, Any]:
        tag_id = cmd.tag_id or ""
        fuzzy = self.fuzzy_default if cmd.fuzzy is None else cmd.fuzzy

        prior: List[StrategyOutcome] = []
        ledger_error: Optional[VeritasError] = None
        candidates = []
        try:
            if not self.collection_id:
                raise LedgerUnavailable("NFT_TOKEN_ID not configured")
            candidates = await self.ledger.query_tokens(self.collection_id)
        except (LedgerUnavailable, NotFound) as e:
            # keep going: the local fallback may still know this tag
            logger.warning("[verify] ledger query failed for token=%s: %s", self.collection_id, e.message)
            ledger_error = e
            prior.append(StrategyOutcome(strategy="ledger_query", status="error", detail=e.message))

        resolver = TagResolver(self.store, self.fallback, fuzzy=fuzzy)
        result = await resolver.resolve(tag_id, candidates, prior=prior)

        await self._audit(tag_id, result)

        if not result.found:
            if isinstance(ledger_error, LedgerUnavailable):
                raise LedgerUnavailable(f"Tag '{tag_id}' could not be resolved: {ledger_error.message}")
            raise NotFound(
                f"No token in collection {self.collection_id} matches tag id '{tag_id}' "
                f"({len(candidates)} token(s) scanned)"
            )

        history: List[ProvenanceEvent] = []
        if cmd.with_history and result.provenance == "content_store":
            history = await self._history(result)

        logger.info("[verify] tag=%s serial=%s provenance=%s rule=%s unreachable=%s",
                    tag_id, result.token.serial_number, result.provenance,
                    result.matched_by, result.document_unreachable)
        return self.present(result, history)

    async def _history(self, result: ResolutionResult) -> List[ProvenanceEvent]:
        try:
            return await self.ledger.token_history(result.token.collection_id, result.token.serial_number)
        except VeritasError as e:
            logger.warning("[verify] history unavailable for serial=%s: %s", result.token.serial_number, e.message)
            return []

    async def _audit(self, tag_id: str, result: ResolutionResult):
        try:
            await self.audit.save_lookup(
                tag_id,
                "found" if result.found else "not_found",
                result.token.serial_number if result.token else None,
            )
        except Exception as e:
            logger.warning("[verify] audit write failed for tag=%s: %s", tag_id, e)

    def present(self, result: ResolutionResult, history: List[ProvenanceEvent]) -> Dict[str, Any]:
        token = result.token
        collection = token.collection_id or self.collection_id
        return {
            "found": True,
            "tagId": result.tag_id,
            "token": token.model_dump(by_alias=True),
            "record": result.record.model_dump(by_alias=True) if result.record else None,
            "contentAddress": result.content_address,
            "provenance": result.provenance,
            "matchedBy": result.matched_by,
            "documentUnreachable": result.document_unreachable,
            "rawPointer": result.raw_pointer,
            "explorerUrl": explorer_url(collection, token.serial_number) if collection else None,
            "gatewayUrl": (self.pinning.gateway_url(result.content_address)
                           if self.pinning and result.content_address else None),
            "history": [h.model_dump(by_alias=True) for h in history],
            "outcomes": [o.model_dump() for o in result.outcomes],
            "verifiedAt": utc_now_iso(),
        }
