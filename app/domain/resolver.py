# app/domain/resolver.py
"""
NFC tag id -> token resolution.

Tokens minted under every historical metadata format stay on-chain, so matching
tolerates all of them. Resolution runs an ordered list of strategies
(ledger candidates -> local fallback cache); each returns a tagged outcome and
the first `matched` one wins.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from app.domain.codec import (
    ADDRESS_FIELDS, CID_PATTERN, SEPARATOR, TAG_FIELDS, first_field, parse_structured,
)
from app.domain.errors import ContentStoreUnreachable
from app.domain.models import (
    MatchRule, MintedToken, ProductRecord, ResolutionResult, StrategyOutcome,
)
from app.domain.ports import ContentStorePort, FallbackCachePort

logger = logging.getLogger("veritas.resolve")

Candidate = Tuple[MintedToken, bytes]


@dataclass
class PointerMatch:
    rule: MatchRule
    content_address: Optional[str]


# ── Match rules ───────────────────────────────────────────────────
def match_delimited(tag_id: str, text: str) -> Optional[PointerMatch]:
    if text.lstrip().startswith("{"):
        return None
    candidate, sep, addr = text.rpartition(SEPARATOR)
    if sep and candidate == tag_id:
        return PointerMatch("delimited", addr or None)
    return None


def match_structured(tag_id: str, text: str) -> Optional[PointerMatch]:
    doc = parse_structured(text)
    if doc is None:
        return None
    if first_field(doc, TAG_FIELDS) == tag_id:
        return PointerMatch("structured", first_field(doc, ADDRESS_FIELDS))
    return None


def match_substring(tag_id: str, text: str) -> Optional[PointerMatch]:
    # legacy free-text pointers; a tag id that prefixes another tag id also hits
    if tag_id in text:
        m = CID_PATTERN.search(text)
        return PointerMatch("substring", m.group(0) if m else None)
    return None


STRICT_RULES = (match_delimited, match_structured)


def match_pointer(tag_id: str, text: str, fuzzy: bool = True) -> Optional[PointerMatch]:
    if not tag_id:
        return None
    rules = STRICT_RULES + ((match_substring,) if fuzzy else ())
    for rule in rules:
        m = rule(tag_id, text)
        if m:
            return m
    return None


# ── Strategies ────────────────────────────────────────────────────
class ResolutionStrategy(ABC):
    name: str = "strategy"

    @abstractmethod
    async def attempt(self, tag_id: str, candidates: Sequence[Candidate]) -> Tuple[StrategyOutcome, Optional[ResolutionResult]]: ...

    def _outcome(self, status, detail=None) -> StrategyOutcome:
        return StrategyOutcome(strategy=self.name, status=status, detail=detail)


class LedgerMatchStrategy(ResolutionStrategy):
    name = "ledger"

    def __init__(self, content_store: ContentStorePort, fuzzy: bool = True):
        self.store = content_store
        self.fuzzy = fuzzy

    async def attempt(self, tag_id, candidates):
        scanned = 0
        for token, raw in candidates:
            scanned += 1
            try:
                text = bytes(raw or b"").decode("utf-8")
            except UnicodeDecodeError:
                logger.debug("[resolve] serial=%s metadata is not UTF-8, skipped", token.serial_number)
                continue

            m = match_pointer(tag_id, text, fuzzy=self.fuzzy)
            if not m:
                continue

            logger.info("[resolve] tag=%s matched serial=%s rule=%s cid=%s",
                        tag_id, token.serial_number, m.rule, m.content_address)
            record = await self._load_record(tag_id, m.content_address)
            result = ResolutionResult(
                tag_id=tag_id,
                token=token,
                record=record,
                content_address=m.content_address,
                provenance="content_store",
                matched_by=m.rule,
                raw_pointer=text,
            )
            return self._outcome("matched", f"serial {token.serial_number} via {m.rule}"), result

        return self._outcome("miss", f"{scanned} candidate(s) scanned"), None

    async def _load_record(self, tag_id: str, content_address: Optional[str]) -> Optional[ProductRecord]:
        if not content_address:
            return None
        try:
            fetched = await self.store.fetch(content_address)
            return fetched.record
        except ContentStoreUnreachable as e:
            logger.warning("[resolve] document %s unreachable: %s", content_address, e.message)
            return ProductRecord.unreachable(content_address, e.message, tag_id=tag_id)


class LocalFallbackStrategy(ResolutionStrategy):
    name = "local_fallback"

    def __init__(self, fallback: FallbackCachePort):
        self.fallback = fallback

    async def attempt(self, tag_id, candidates):
        entry = await self.fallback.get(tag_id)
        if entry is None:
            return self._outcome("miss", "no cached entry"), None

        token = None
        if entry.serial_number is not None:
            token = MintedToken(collection_id=entry.collection_id or "", serial_number=entry.serial_number)
        if token is None:
            return self._outcome("miss", "cached entry has no serial number"), None

        logger.info("[resolve] tag=%s served from local fallback (serial=%s, cached %s)",
                    tag_id, entry.serial_number, entry.timestamp)
        result = ResolutionResult(
            tag_id=tag_id,
            token=token,
            record=entry.record,
            content_address=entry.content_address,
            provenance="local_fallback",
            matched_by="fallback",
        )
        return self._outcome("matched", f"cached {entry.timestamp}"), result


# ── Resolver ──────────────────────────────────────────────────────
class TagResolver:
    def __init__(
        self,
        content_store: ContentStorePort,
        fallback: FallbackCachePort,
        fuzzy: bool = True,
        strategies: Optional[List[ResolutionStrategy]] = None,
    ):
        self.strategies = strategies or [
            LedgerMatchStrategy(content_store, fuzzy=fuzzy),
            LocalFallbackStrategy(fallback),
        ]

    async def resolve(
        self,
        tag_id: str,
        candidates: Iterable[Candidate],
        prior: Optional[List[StrategyOutcome]] = None,
    ) -> ResolutionResult:
        """First candidate (in supplied order) satisfying any rule wins; then the fallback cache."""
        candidates = list(candidates)
        outcomes: List[StrategyOutcome] = list(prior or [])
        for strategy in self.strategies:
            outcome, result = await strategy.attempt(tag_id, candidates)
            outcomes.append(outcome)
            if result is not None:
                result.outcomes = outcomes
                return result

        logger.info("[resolve] tag=%s not found (%d candidate(s))", tag_id, len(candidates))
        return ResolutionResult(tag_id=tag_id, outcomes=outcomes)
