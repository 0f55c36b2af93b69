# app/presentation/schemas.py
from __future__ import annotations
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ── PIN ──────────────────────────────────────────────────────────
class PinRequest(_CamelModel):
    product_data: Optional[Dict[str, Any]] = Field(None, alias="productData")
    tag_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("tagId", "nfcSerialId", "tag_id"),
    )


class PinResponse(_CamelModel):
    content_address: str = Field(alias="contentAddress")
    gateway_url: str = Field(alias="gatewayUrl")
    record: Dict[str, Any]


# ── MINT ─────────────────────────────────────────────────────────
class MintRequest(_CamelModel):
    # legacy portal names (nfcSerialId / ipfsCID) are still accepted
    tag_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("tagId", "nfcSerialId", "tag_id"),
        description="NFC tag serial",
    )
    content_address: Optional[str] = Field(
        None, validation_alias=AliasChoices("contentAddress", "ipfsCID", "content_address"),
        description="IPFS CID of the pinned product document",
    )
    product_data: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("productData", "product_data"),
    )


class MintResponse(_CamelModel):
    success: bool
    serial_number: int = Field(alias="serialNumber")
    transaction_id: str = Field(alias="transactionId")
    content_address: str = Field(alias="contentAddress")
    explorer_url: str = Field(alias="explorerUrl")
    transaction_url: Optional[str] = Field(None, alias="transactionUrl")
    gateway_url: Optional[str] = Field(None, alias="gatewayUrl")
    tag_id: str = Field(alias="tagId")
    token_id: str = Field(alias="tokenId")
    pointer: str
    timestamp: str


# ── VERIFY ───────────────────────────────────────────────────────
class VerifyRequest(_CamelModel):
    tag_id: str = Field(
        "", validation_alias=AliasChoices("tagId", "nfcSerialId", "tag_id"),
        description="NFC tag serial as scanned or typed",
    )
    fuzzy: Optional[bool] = Field(None, description="Allow substring matches on legacy pointers")
    with_history: bool = Field(True, validation_alias=AliasChoices("withHistory", "with_history"))
    session_id: Optional[str] = Field(None, validation_alias=AliasChoices("sessionId", "session_id"),
                                      description="Session id (if not using header)")


class VerifyResponse(_CamelModel):
    found: bool
    tag_id: str = Field(alias="tagId")
    token: Dict[str, Any]
    record: Optional[Dict[str, Any]] = None
    content_address: Optional[str] = Field(None, alias="contentAddress")
    provenance: Optional[str] = None
    matched_by: Optional[str] = Field(None, alias="matchedBy")
    document_unreachable: bool = Field(False, alias="documentUnreachable")
    raw_pointer: Optional[str] = Field(None, alias="rawPointer")
    explorer_url: Optional[str] = Field(None, alias="explorerUrl")
    gateway_url: Optional[str] = Field(None, alias="gatewayUrl")
    history: List[Dict[str, Any]] = []
    outcomes: List[Dict[str, Any]] = []
    verified_at: str = Field(alias="verifiedAt")


# ── TRANSFER ─────────────────────────────────────────────────────
class TransferRequest(_CamelModel):
    serial_number: int = Field(validation_alias=AliasChoices("serialNumber", "serial_number"))
    to_account_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("toAccountId", "to_account_id"),
        description="Defaults to the session's account",
    )


class TransferResponse(_CamelModel):
    success: bool
    transaction_id: str = Field(alias="transactionId")
    status: str
    token_id: str = Field(alias="tokenId")
    serial_number: int = Field(alias="serialNumber")
    previous_owner: str = Field(alias="previousOwner")
    new_owner: str = Field(alias="newOwner")
    explorer_url: str = Field(alias="explorerUrl")
    transaction_url: str = Field(alias="transactionUrl")
    timestamp: str


# ── SESSION ──────────────────────────────────────────────────────
class SessionRequest(_CamelModel):
    account_id: str = Field(validation_alias=AliasChoices("accountId", "account_id"))
    display_name: Optional[str] = Field(None, validation_alias=AliasChoices("displayName", "display_name"))


class SessionResponse(_CamelModel):
    session_id: str = Field(alias="sessionId")
    account_id: str = Field(alias="accountId")
    display_name: Optional[str] = Field(None, alias="displayName")
    created_at: str = Field(alias="createdAt")


class SessionSnapshotResponse(SessionResponse):
    updated_at: Optional[str] = Field(None, alias="updatedAt")
    last_verification: Optional[Dict[str, Any]] = Field(None, alias="lastVerification")
    recent_scans: List[Dict[str, Any]] = Field(default_factory=list, alias="recentScans")


# ── ERRORS ───────────────────────────────────────────────────────
class ErrorResponse(BaseModel):
    error: str
    message: str
