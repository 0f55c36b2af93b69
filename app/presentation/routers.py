# app/presentation/routers.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, Request

from app.infra.api.security import require_api_key

from app.presentation.schemas import (
    PinRequest, PinResponse,
    MintRequest, MintResponse,
    VerifyRequest, VerifyResponse,
    TransferRequest, TransferResponse,
    SessionRequest, SessionResponse, SessionSnapshotResponse,
    ErrorResponse,
)

from app.container import (
    get_pin_uc, get_mint_uc, get_verify_uc, get_transfer_uc, get_token_uc,
    get_session_state,
)

from app.application.commands import (
    MintProductCommand, PinProductCommand, TransferCommand, VerifyTagCommand,
)
from app.application.mint_use_case import MintProductUseCase, PinProductUseCase
from app.application.verify_use_case import VerifyTagUseCase
from app.application.transfer_use_case import TransferOwnershipUseCase, validate_account_id
from app.application.token_use_case import TokenLookupUseCase
from app.domain.errors import NotFound
from app.services.session_state import SessionStateService


# ──────────────────────────────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────────────────────────────
logger = logging.getLogger(__name__)

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _resolve_session_id(body_sid: str | None, x_session_id: str | None) -> str | None:
    """Header X-Session-Id wins over a session id in the body."""
    if body_sid and x_session_id and body_sid != x_session_id:
        logger.warning("session_id mismatch: header=%s body=%s (using header)", x_session_id, body_sid)
    sid = x_session_id or body_sid
    if sid and len(sid) > 256:
        logger.warning("session_id looks too long; check client payload")
    return sid


# Read-only routes are public; anything that pins or signs needs X-Api-Key
router = APIRouter()
write_router = APIRouter(dependencies=[Depends(require_api_key)])


# ── PIN ───────────────────────────────────────────────────────────
@write_router.post("/pin", response_model=PinResponse, responses=_ERRORS)
async def pin_product(req: PinRequest, uc: PinProductUseCase = Depends(get_pin_uc)):
    return await uc.execute(PinProductCommand(product_data=req.product_data, tag_id=req.tag_id))


# ── MINT ──────────────────────────────────────────────────────────
@write_router.post("/mint", response_model=MintResponse, responses=_ERRORS)
async def mint_product(req: MintRequest, uc: MintProductUseCase = Depends(get_mint_uc)):
    logger.info("[mint] request tag=%s cid=%s product=%s",
                req.tag_id, req.content_address, bool(req.product_data))
    return await uc.execute(MintProductCommand(
        tag_id=req.tag_id,
        content_address=req.content_address,
        product_data=req.product_data,
    ))


# ── VERIFY ────────────────────────────────────────────────────────
@router.post("/verify", response_model=VerifyResponse, responses=_ERRORS)
async def verify_tag(
    req: VerifyRequest,
    request: Request,
    uc: VerifyTagUseCase = Depends(get_verify_uc),
    sess: SessionStateService = Depends(get_session_state),
    session_id_hdr: str | None = Header(None, alias="X-Session-Id"),
):
    out = await uc.execute(VerifyTagCommand(tag_id=req.tag_id, fuzzy=req.fuzzy, with_history=req.with_history))

    sid = _resolve_session_id(req.session_id, session_id_hdr)
    logger.info("[verify] tag=%s sid=%s ua=%s", req.tag_id, sid, request.headers.get("user-agent"))
    if sid and await sess.get_session(sid):
        await sess.save_verification(sid, out)
        logger.info("[verify] saved verification to session=%s", sid)
    return out


# ── TRANSFER ──────────────────────────────────────────────────────
@write_router.post("/transfer", response_model=TransferResponse, responses={**_ERRORS, 401: {"model": ErrorResponse}})
async def transfer_ownership(
    req: TransferRequest,
    uc: TransferOwnershipUseCase = Depends(get_transfer_uc),
    sess: SessionStateService = Depends(get_session_state),
    session_id_hdr: str | None = Header(None, alias="X-Session-Id"),
):
    session = await sess.get_session(session_id_hdr)
    return await uc.execute(session, TransferCommand(
        serial_number=req.serial_number,
        to_account_id=req.to_account_id,
    ))


# ── SESSION ───────────────────────────────────────────────────────
@router.post("/session", response_model=SessionResponse, responses=_ERRORS)
async def create_session(req: SessionRequest, sess: SessionStateService = Depends(get_session_state)):
    validate_account_id(req.account_id)
    session = await sess.create_session(req.account_id, req.display_name)
    logger.info("[session] created %s for %s", session.session_id, session.account_id)
    return session.model_dump()


@router.get("/session/{session_id}", response_model=SessionSnapshotResponse, responses=_ERRORS)
async def get_session(session_id: str, sess: SessionStateService = Depends(get_session_state)):
    snapshot = await sess.get_context(session_id)
    if snapshot is None:
        raise NotFound(f"Session {session_id} not found or expired")
    return snapshot


# ── TOKEN (read-only mirror proxy) ────────────────────────────────
@router.get("/token/{collection_id}/{serial}", responses=_ERRORS)
async def get_token(collection_id: str, serial: int, uc: TokenLookupUseCase = Depends(get_token_uc)):
    return await uc.get(collection_id, serial)


@router.get("/token/{collection_id}/{serial}/history", responses=_ERRORS)
async def get_token_history(collection_id: str, serial: int, uc: TokenLookupUseCase = Depends(get_token_uc)):
    return await uc.history(collection_id, serial)
