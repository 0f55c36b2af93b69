# app/domain/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PointerForm = Literal["delimited", "structured"]
Provenance = Literal["content_store", "local_fallback"]
MatchRule = Literal["delimited", "structured", "substring", "fallback"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProductRecord(BaseModel):
    """Off-chain product document, as pinned. camelCase on the wire."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: Optional[str] = None
    category: Optional[str] = None
    manufacturer: Optional[str] = None
    manufacturing_date: Optional[str] = Field(None, alias="manufacturingDate")
    serial_number: Optional[str] = Field(None, alias="serialNumber")
    description: Optional[str] = None
    image: Optional[str] = None
    tag_id: Optional[str] = Field(None, alias="tagId")
    version: Optional[str] = None
    timestamp: Optional[str] = None

    # placeholder fields, only set when the document could not be fetched
    document_unreachable: bool = Field(False, alias="documentUnreachable")
    content_address: Optional[str] = Field(None, alias="contentAddress")
    unreachable_cause: Optional[str] = Field(None, alias="unreachableCause")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ProductRecord":
        from app.domain.documents import normalize_document
        return cls.model_validate(normalize_document(doc))

    @classmethod
    def unreachable(cls, content_address: str, cause: str, tag_id: str | None = None) -> "ProductRecord":
        return cls(
            name="Document unavailable",
            description=f"Metadata is pinned at {content_address} but could not be retrieved.",
            tag_id=tag_id,
            document_unreachable=True,
            content_address=content_address,
            unreachable_cause=cause,
        )

    def to_document(self) -> Dict[str, Any]:
        """Canonical pinned shape (no placeholder fields)."""
        return self.model_dump(
            by_alias=True,
            exclude={"document_unreachable", "content_address", "unreachable_cause"},
        )


class OnChainPointer(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag_id: str
    content_address: str
    form: PointerForm = "delimited"

    def to_text(self) -> str:
        from app.domain.codec import pointer_text
        return pointer_text(self.tag_id, self.content_address, self.form)

    def to_bytes(self) -> bytes:
        return self.to_text().encode("utf-8")

    @property
    def byte_length(self) -> int:
        return len(self.to_bytes())


class MintedToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    collection_id: str = Field(alias="collectionId")
    serial_number: int = Field(alias="serialNumber")
    owner_account_id: Optional[str] = Field(None, alias="ownerAccountId")
    created_at: Optional[str] = Field(None, alias="createdAt")


class MintReceipt(BaseModel):
    serial_number: int
    transaction_id: str
    status: str = "SUCCESS"


class TransferReceipt(BaseModel):
    transaction_id: str
    status: str


class ProvenanceEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    timestamp: Optional[str] = None
    from_account: Optional[str] = Field(None, alias="from")
    to_account: Optional[str] = Field(None, alias="to")
    transaction_id: Optional[str] = Field(None, alias="transactionId")


class StrategyOutcome(BaseModel):
    strategy: str
    status: Literal["matched", "miss", "error"]
    detail: Optional[str] = None


class ResolutionResult(BaseModel):
    tag_id: str
    token: Optional[MintedToken] = None
    record: Optional[ProductRecord] = None
    content_address: Optional[str] = None
    provenance: Optional[Provenance] = None
    matched_by: Optional[MatchRule] = None
    raw_pointer: Optional[str] = None
    outcomes: List[StrategyOutcome] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.token is not None

    @property
    def document_unreachable(self) -> bool:
        return bool(self.record and self.record.document_unreachable)


class FallbackEntry(BaseModel):
    tag_id: str
    collection_id: Optional[str] = None
    serial_number: Optional[int] = None
    content_address: Optional[str] = None
    record: Optional[ProductRecord] = None
    timestamp: str = Field(default_factory=utc_now_iso)


class ScanSession(BaseModel):
    session_id: str
    account_id: str
    display_name: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
