# app/domain/codec.py
from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Optional

from app.domain.errors import PointerTooLarge, ValidationError
from app.domain.models import OnChainPointer, PointerForm, ProductRecord

# Hedera NFT metadata slot
MAX_POINTER_BYTES = 100

SEPARATOR = ":"

# field names accepted in structured pointers, newest first
TAG_FIELDS = ("tagId", "nfcSerialId", "nfc")
ADDRESS_FIELDS = ("cid", "contentAddress", "ipfsCID", "ipfs")

# CIDv0 (base58 "Qm...") and CIDv1 base32 ("bafy...")
CID_PATTERN = re.compile(r"Qm[1-9A-HJ-NP-Za-km-z]{44}|bafy[a-z2-7]{50,}")


def pointer_text(tag_id: str, content_address: str, form: PointerForm = "delimited") -> str:
    if form == "structured":
        return json.dumps({"tagId": tag_id, "cid": content_address}, separators=(",", ":"), ensure_ascii=False)
    return f"{tag_id}{SEPARATOR}{content_address}"


def encode_pointer(tag_id: str, content_address: str, structured: bool = False) -> OnChainPointer:
    if not tag_id:
        raise ValidationError("tagId is required")
    if not content_address:
        raise ValidationError("contentAddress is required")
    if SEPARATOR in content_address:
        raise ValidationError(f"contentAddress must not contain '{SEPARATOR}'")

    pointer = OnChainPointer(
        tag_id=tag_id,
        content_address=content_address,
        form="structured" if structured else "delimited",
    )
    size = pointer.byte_length
    if size > MAX_POINTER_BYTES:
        raise PointerTooLarge(size, MAX_POINTER_BYTES)
    return pointer


def encode(record: ProductRecord, content_address: str, structured: bool = False) -> OnChainPointer:
    """Pointer for a pinned record. Only the tag id and address go on-chain."""
    return encode_pointer(record.tag_id or "", content_address, structured=structured)


def parse_structured(text: str) -> Optional[dict]:
    try:
        doc = json.loads(text)
    except ValueError:
        return None
    return doc if isinstance(doc, dict) else None


def first_field(doc: dict, names) -> Optional[str]:
    # strings only: {"nfc": 123} must not match tag "123"
    for n in names:
        v = doc.get(n)
        if isinstance(v, str) and v:
            return v
    return None


def decode_pointer(raw: bytes | str) -> Optional[OnChainPointer]:
    """
    Inverse of encode for both forms. Returns None for text that is neither.
    Delimited text is split at the last separator: tag ids may contain ':'
    (e.g. "NFC-04:A1:B2"), content addresses never do.
    """
    text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
    if text.lstrip().startswith("{"):
        doc = parse_structured(text)
        if doc is None:
            return None
        tag = first_field(doc, TAG_FIELDS)
        addr = first_field(doc, ADDRESS_FIELDS)
        if tag is None or addr is None:
            return None
        return OnChainPointer(tag_id=tag, content_address=addr, form="structured")

    tag, sep, addr = text.rpartition(SEPARATOR)
    if not sep or not tag or not addr:
        return None
    return OnChainPointer(tag_id=tag, content_address=addr, form="delimited")


def decode_metadata(b64: Optional[str]) -> bytes:
    """Mirror node metadata (base64) -> raw pointer bytes."""
    if not b64:
        return b""
    try:
        return base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError):
        # older records may hold the raw string
        return b64.encode("utf-8")
