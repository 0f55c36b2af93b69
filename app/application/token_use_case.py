# app/application/token_use_case.py
from __future__ import annotations

from typing import Any, Dict

from app.application.links import explorer_url
from app.application.transfer_use_case import validate_account_id
from app.domain.codec import decode_metadata, decode_pointer
from app.domain.errors import ValidationError
from app.domain.ports import LedgerPort


class TokenLookupUseCase:
    """Read-only token views for GET /token/..."""

    def __init__(self, ledger: LedgerPort):
        self.ledger = ledger

    @staticmethod
    def _check(collection_id: str, serial_number: int):
        validate_account_id(collection_id, "collectionId")  # token ids share the shard.realm.num form
        if serial_number < 1:
            raise ValidationError("serial must be a positive integer")

    async def get(self, collection_id: str, serial_number: int) -> Dict[str, Any]:
        self._check(collection_id, serial_number)
        nft = await self.ledger.get_token(collection_id, serial_number)

        raw = decode_metadata(nft.get("metadata"))
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            text = None
        pointer = decode_pointer(text) if text else None

        return {
            **nft,
            "decodedMetadata": text,
            "pointer": pointer.model_dump() if pointer else None,
            "explorerUrl": explorer_url(collection_id, serial_number),
        }

    async def history(self, collection_id: str, serial_number: int) -> Dict[str, Any]:
        self._check(collection_id, serial_number)
        events = await self.ledger.token_history(collection_id, serial_number)
        return {
            "tokenId": collection_id,
            "serialNumber": serial_number,
            "history": [e.model_dump(by_alias=True) for e in events],
        }
