# app/application/mint_use_case.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from app.application.commands import MintProductCommand, PinProductCommand
from app.application.links import explorer_url, transaction_url
from app.domain.codec import encode_pointer
from app.domain.documents import normalize_document
from app.domain.errors import LedgerUnavailable, ValidationError
from app.domain.models import FallbackEntry, ProductRecord, utc_now_iso
from app.domain.ports import AuditRepoPort, FallbackCachePort, LedgerPort, PinningPort

logger = logging.getLogger("veritas.mint")


class PinProductUseCase:
    """Normalise submitted product data, stamp it, pin it. Returns the content address."""

    def __init__(self, pinning: PinningPort, fallback: FallbackCachePort):
        self.pinning = pinning
        self.fallback = fallback

    async def execute(self, cmd: PinProductCommand) -> Dict[str, Any]:
        if not cmd.product_data:
            raise ValidationError("productData is required")

        doc = normalize_document(cmd.product_data)
        doc["tagId"] = cmd.tag_id or doc.get("tagId")
        doc["timestamp"] = doc.get("timestamp") or utc_now_iso()
        record = ProductRecord.model_validate(doc)
        if not record.name or not record.tag_id:
            raise ValidationError("Product name and tagId are required")

        cid = await self.pinning.pin(record.to_document(), name=f"Veritas-{record.tag_id}.json")
        await self.fallback.put(FallbackEntry(tag_id=record.tag_id, content_address=cid, record=record))

        return {
            "contentAddress": cid,
            "gatewayUrl": self.pinning.gateway_url(cid),
            "record": record.to_document(),
        }


class MintProductUseCase:
    """
    Mint one token per product: validate -> encode pointer -> ledger mint ->
    fallback cache -> audit. The pointer is checked before any network call and
    a failed mint is surfaced, never retried.
    """

    def __init__(
        self,
        ledger: LedgerPort,
        fallback: FallbackCachePort,
        audit: AuditRepoPort,
        collection_id: Optional[str],
        pinning: Optional[PinningPort] = None,
    ):
        self.ledger = ledger
        self.fallback = fallback
        self.audit = audit
        self.collection_id = collection_id
        self.pinning = pinning

    async def execute(self, cmd: MintProductCommand) -> Dict[str, Any]:
        if not cmd.tag_id or not cmd.content_address:
            raise ValidationError("Missing required fields: tagId and contentAddress are required")

        pointer = encode_pointer(cmd.tag_id, cmd.content_address)

        if not self.collection_id:
            raise LedgerUnavailable("NFT_TOKEN_ID not configured; deploy the token collection first")

        record = None
        if cmd.product_data:
            record = ProductRecord.from_document({**cmd.product_data, "tagId": cmd.tag_id})

        logger.info("[mint] token=%s tag=%s cid=%s pointer=%dB",
                    self.collection_id, cmd.tag_id, cmd.content_address, pointer.byte_length)
        receipt = await self.ledger.mint(self.collection_id, pointer.to_bytes())
        logger.info("[mint] minted serial=%s tx=%s", receipt.serial_number, receipt.transaction_id)

        # the token exists from here on; side writes must not turn this into an error
        try:
            await self.fallback.put(FallbackEntry(
                tag_id=cmd.tag_id,
                collection_id=self.collection_id,
                serial_number=receipt.serial_number,
                content_address=cmd.content_address,
                record=record,
            ))
        except Exception as e:
            logger.warning("[mint] fallback cache write failed for tag=%s: %s", cmd.tag_id, e)

        try:
            await self.audit.save_mint(cmd.tag_id, receipt.serial_number, receipt.transaction_id, cmd.content_address)
        except Exception as e:
            logger.warning("[mint] audit write failed for serial=%s: %s", receipt.serial_number, e)

        return {
            "success": True,
            "serialNumber": receipt.serial_number,
            "transactionId": receipt.transaction_id,
            "contentAddress": cmd.content_address,
            "explorerUrl": explorer_url(self.collection_id, receipt.serial_number),
            "transactionUrl": transaction_url(receipt.transaction_id),
            "gatewayUrl": self.pinning.gateway_url(cmd.content_address) if self.pinning else None,
            "tagId": cmd.tag_id,
            "tokenId": self.collection_id,
            "pointer": pointer.to_text(),
            "timestamp": utc_now_iso(),
        }
