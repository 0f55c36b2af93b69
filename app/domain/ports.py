# app/domain/ports.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from app.domain.models import (
    FallbackEntry, MintReceipt, MintedToken, ProductRecord, ProvenanceEvent, TransferReceipt,
)


class LedgerPort(ABC):
    """Token issuance and queries. Implementations hold the operator credential."""

    @abstractmethod
    async def mint(self, collection_id: str, pointer: bytes) -> MintReceipt: ...

    @abstractmethod
    async def transfer(self, collection_id: str, serial_number: int,
                       from_account: str, to_account: str) -> TransferReceipt: ...

    @abstractmethod
    async def query_tokens(self, collection_id: str) -> List[Tuple[MintedToken, bytes]]:
        """(token, raw pointer bytes) in ascending serial order."""

    @abstractmethod
    async def get_token(self, collection_id: str, serial_number: int) -> Dict[str, Any]: ...

    @abstractmethod
    async def token_history(self, collection_id: str, serial_number: int) -> List[ProvenanceEvent]: ...


class FetchedDocument:
    """Result of a content fetch: the record, the endpoint that served it and every attempt made."""

    def __init__(self, record: ProductRecord, endpoint: str, attempts: List[Dict[str, Any]]):
        self.record = record
        self.endpoint = endpoint
        self.attempts = attempts


class ContentStorePort(ABC):
    @abstractmethod
    async def fetch(self, content_address: str) -> FetchedDocument:
        """Raises ContentStoreUnreachable when no endpoint serves a document."""


class PinningPort(ABC):
    @abstractmethod
    async def pin(self, document: Dict[str, Any], name: Optional[str] = None) -> str: ...

    @abstractmethod
    def gateway_url(self, content_address: str) -> str: ...


class AuditRepoPort(ABC):
    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def save_mint(self, tag_id: str, serial_number: int, transaction_id: str, content_address: str) -> None: ...

    @abstractmethod
    async def save_lookup(self, tag_id: str, status: str, serial_number: Optional[int] = None) -> None: ...

    @abstractmethod
    async def save_transfer(self, serial_number: int, to_account: str, transaction_id: str, status: str) -> None: ...


class FallbackCachePort(ABC):
    """tagId -> last-known mint. Advisory only, last writer wins."""

    @abstractmethod
    async def get(self, tag_id: str) -> Optional[FallbackEntry]: ...

    @abstractmethod
    async def put(self, entry: FallbackEntry) -> None: ...
