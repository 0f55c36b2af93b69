# tests/unit/test_transfer_use_case.py
import asyncio

import pytest

from app.application.commands import TransferCommand
from app.application.token_use_case import TokenLookupUseCase
from app.application.transfer_use_case import TransferOwnershipUseCase
from app.domain.errors import LedgerRejected, NotFound, SessionRequired, ValidationError
from app.domain.models import ScanSession

COLLECTION = "0.0.7001"
TREASURY = "0.0.5770350"
CUSTOMER = ScanSession(session_id="s1", account_id="0.0.789012")


def _uc(ledger, audit, treasury=TREASURY):
    return TransferOwnershipUseCase(ledger=ledger, audit=audit, collection_id=COLLECTION, treasury_account_id=treasury)


def test_transfer_to_session_account(ledger, audit):
    ledger.add("fgthbnm:QmAbc123")
    out = asyncio.run(_uc(ledger, audit).execute(CUSTOMER, TransferCommand(serial_number=1)))
    assert out["newOwner"] == "0.0.789012"
    assert out["previousOwner"] == TREASURY
    assert ledger.transfers == [(COLLECTION, 1, TREASURY, "0.0.789012")]
    assert audit.transfers[0][:2] == (1, "0.0.789012")


def test_transfer_requires_session(ledger, audit):
    with pytest.raises(SessionRequired):
        asyncio.run(_uc(ledger, audit).execute(None, TransferCommand(serial_number=1)))
    assert ledger.transfers == []


@pytest.mark.parametrize("cmd", [
    TransferCommand(serial_number=0),
    TransferCommand(serial_number=1, to_account_id="alice"),
    TransferCommand(serial_number=1, to_account_id=TREASURY),
])
def test_transfer_validation(ledger, audit, cmd):
    ledger.add("fgthbnm:QmAbc123")
    with pytest.raises(ValidationError):
        asyncio.run(_uc(ledger, audit).execute(CUSTOMER, cmd))
    assert ledger.transfers == []


def test_transfer_without_treasury(ledger, audit):
    with pytest.raises(ValidationError):
        asyncio.run(_uc(ledger, audit, treasury=None).execute(CUSTOMER, TransferCommand(serial_number=1)))


def test_ledger_rejection_propagates(ledger, audit):
    with pytest.raises(LedgerRejected):
        asyncio.run(_uc(ledger, audit).execute(CUSTOMER, TransferCommand(serial_number=5)))
    assert audit.transfers == []


def test_token_lookup_decodes_pointer(ledger):
    ledger.add("fgthbnm:QmAbc123")
    out = asyncio.run(TokenLookupUseCase(ledger).get(COLLECTION, 1))
    assert out["decodedMetadata"] == "fgthbnm:QmAbc123"
    assert out["pointer"] == {"tag_id": "fgthbnm", "content_address": "QmAbc123", "form": "delimited"}


def test_token_lookup_errors(ledger):
    with pytest.raises(ValidationError):
        asyncio.run(TokenLookupUseCase(ledger).get("not-a-token", 1))
    with pytest.raises(NotFound):
        asyncio.run(TokenLookupUseCase(ledger).get(COLLECTION, 3))
