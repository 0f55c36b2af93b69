# app/infra/ledger/hedera_adapter.py
"""
Ledger adapter: transactions through the Hedera SDK, reads through the mirror node.

Every transaction follows build -> freeze -> sign -> execute -> receipt. The SDK
is blocking, so calls run in the default executor. Mints are never retried.
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from hiero_sdk_python import (
    AccountId, Client, Network, NftId, PrivateKey, ResponseCode, TokenId,
    TokenMintTransaction, TransferTransaction,
)

from app.domain.errors import LedgerRejected, LedgerUnavailable, ValidationError
from app.domain.models import MintReceipt, MintedToken, ProvenanceEvent, TransferReceipt
from app.domain.ports import LedgerPort
from app.infra.ledger.mirror_node import MirrorNodeClient

logger = logging.getLogger("veritas.ledger")

HEDERA_NETWORK = os.getenv("HEDERA_NETWORK", "testnet")


def _status_name(status: Any) -> str:
    try:
        return ResponseCode(status).name
    except (ValueError, TypeError):
        return str(status)


class HederaLedger(LedgerPort):
    def __init__(
        self,
        operator_id: Optional[str] = None,
        operator_key: Optional[str] = None,
        supply_key: Optional[str] = None,
        treasury_id: Optional[str] = None,
        treasury_key: Optional[str] = None,
        network: str = HEDERA_NETWORK,
        mirror: Optional[MirrorNodeClient] = None,
    ):
        self.operator_id = operator_id or os.getenv("HEDERA_OPERATOR_ID", "")
        self.operator_key = operator_key or os.getenv("HEDERA_OPERATOR_KEY", "")
        # supply key defaults to the operator key, as in deployment
        self.supply_key = supply_key or os.getenv("HEDERA_SUPPLY_KEY") or self.operator_key
        # treasury holds freshly minted tokens and signs transfers out of it;
        # an operator-owned treasury needs no separate key
        self.treasury_id = treasury_id or os.getenv("HEDERA_TREASURY_ID") or self.operator_id
        self.treasury_key = treasury_key or os.getenv("HEDERA_TREASURY_KEY") or self.operator_key
        self.network = network
        self.mirror = mirror or MirrorNodeClient()

    @property
    def configured(self) -> bool:
        return bool(self.operator_id and self.operator_key)

    def _client(self) -> Client:
        if not self.configured:
            raise LedgerUnavailable("HEDERA_OPERATOR_ID / HEDERA_OPERATOR_KEY not configured")
        client = Client(Network(self.network))
        client.set_operator(AccountId.from_string(self.operator_id), PrivateKey.from_string(self.operator_key))
        return client

    def _execute(self, tx, signing_key: str):
        """freeze -> sign -> execute; returns (receipt, transaction id)."""
        client = self._client()
        try:
            tx.freeze_with(client)
            tx.sign(PrivateKey.from_string(signing_key))
            receipt = tx.execute(client)
        except Exception as e:
            status = getattr(e, "status", None)
            if status is not None:
                raise LedgerRejected(f"Ledger rejected transaction: {_status_name(status)}",
                                     status=_status_name(status)) from e
            raise LedgerUnavailable(f"Ledger call failed: {e}") from e
        finally:
            close = getattr(client, "close", None)
            if close:
                close()

        if receipt.status != ResponseCode.SUCCESS:
            name = _status_name(receipt.status)
            raise LedgerRejected(f"Transaction finished with status {name}", status=name)
        return receipt, str(tx.transaction_id)

    # ── Transactions ─────────────────────────────────────────────
    def _mint_sync(self, collection_id: str, pointer: bytes) -> MintReceipt:
        tx = (
            TokenMintTransaction()
            .set_token_id(TokenId.from_string(collection_id))
            .set_metadata([pointer])
        )
        receipt, tx_id = self._execute(tx, self.supply_key)
        serials = list(receipt.serial_numbers or [])
        if not serials:
            raise LedgerRejected("Mint receipt carries no serial number", status="NO_SERIAL")
        return MintReceipt(serial_number=int(serials[0]), transaction_id=tx_id)

    async def mint(self, collection_id: str, pointer: bytes) -> MintReceipt:
        logger.info("[ledger] mint token=%s pointer=%dB", collection_id, len(pointer))
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._mint_sync, collection_id, pointer)

    def _transfer_sync(self, collection_id: str, serial_number: int, from_account: str, to_account: str) -> TransferReceipt:
        if from_account != self.treasury_id:
            raise ValidationError(f"Only the treasury account {self.treasury_id} can be the sender of a server-side transfer")
        nft = NftId(token_id=TokenId.from_string(collection_id), serial_number=int(serial_number))
        tx = TransferTransaction().add_nft_transfer(
            nft, AccountId.from_string(from_account), AccountId.from_string(to_account)
        )
        receipt, tx_id = self._execute(tx, self.treasury_key)
        return TransferReceipt(transaction_id=tx_id, status=_status_name(receipt.status))

    async def transfer(self, collection_id: str, serial_number: int, from_account: str, to_account: str) -> TransferReceipt:
        logger.info("[ledger] transfer token=%s serial=%s %s -> %s", collection_id, serial_number, from_account, to_account)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._transfer_sync, collection_id, serial_number, from_account, to_account)

    # ── Queries (mirror node) ────────────────────────────────────
    async def query_tokens(self, collection_id: str) -> List[Tuple[MintedToken, bytes]]:
        return await self.mirror.list_nfts(collection_id)

    async def get_token(self, collection_id: str, serial_number: int) -> Dict[str, Any]:
        return await self.mirror.get_nft(collection_id, serial_number)

    async def token_history(self, collection_id: str, serial_number: int) -> List[ProvenanceEvent]:
        return await self.mirror.nft_history(collection_id, serial_number)
