# app/application/transfer_use_case.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from app.application.commands import TransferCommand
from app.application.links import explorer_url, transaction_url
from app.domain.errors import SessionRequired, ValidationError
from app.domain.models import ScanSession, utc_now_iso
from app.domain.ports import AuditRepoPort, LedgerPort

logger = logging.getLogger("veritas.transfer")

ACCOUNT_ID = re.compile(r"^\d+\.\d+\.\d+$")


def validate_account_id(account_id: Optional[str], field: str = "accountId") -> str:
    if not account_id or not ACCOUNT_ID.match(account_id):
        raise ValidationError(f"{field} must look like 0.0.12345, got {account_id!r}")
    return account_id


class TransferOwnershipUseCase:
    """Treasury -> customer transfer, signed server-side. Not retried on failure."""

    def __init__(self, ledger: LedgerPort, audit: AuditRepoPort,
                 collection_id: Optional[str], treasury_account_id: Optional[str]):
        self.ledger = ledger
        self.audit = audit
        self.collection_id = collection_id
        self.treasury = treasury_account_id

    async def execute(self, session: Optional[ScanSession], cmd: TransferCommand) -> Dict[str, Any]:
        if session is None:
            raise SessionRequired("Sign in (X-Session-Id) before claiming ownership")
        if cmd.serial_number < 1:
            raise ValidationError("serialNumber must be a positive integer")
        if not self.collection_id or not self.treasury:
            raise ValidationError("NFT_TOKEN_ID and HEDERA_TREASURY_ID must be configured for transfers")

        to_account = validate_account_id(cmd.to_account_id or session.account_id, "toAccountId")
        if to_account == self.treasury:
            raise ValidationError("Recipient is the treasury account")

        receipt = await self.ledger.transfer(self.collection_id, cmd.serial_number, self.treasury, to_account)
        logger.info("[transfer] serial=%s -> %s tx=%s status=%s (session=%s)",
                    cmd.serial_number, to_account, receipt.transaction_id, receipt.status, session.session_id)

        try:
            await self.audit.save_transfer(cmd.serial_number, to_account, receipt.transaction_id, receipt.status)
        except Exception as e:
            logger.warning("[transfer] audit write failed for serial=%s: %s", cmd.serial_number, e)

        return {
            "success": True,
            "transactionId": receipt.transaction_id,
            "status": receipt.status,
            "tokenId": self.collection_id,
            "serialNumber": cmd.serial_number,
            "previousOwner": self.treasury,
            "newOwner": to_account,
            "explorerUrl": explorer_url(self.collection_id, cmd.serial_number),
            "transactionUrl": transaction_url(receipt.transaction_id),
            "timestamp": utc_now_iso(),
        }
