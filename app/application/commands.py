# app/application/commands.py
from typing import Any, Dict
from pydantic import BaseModel


class PinProductCommand(BaseModel):
    product_data: Dict[str, Any] | None = None
    tag_id: str | None = None


class MintProductCommand(BaseModel):
    tag_id: str | None = None
    content_address: str | None = None
    product_data: Dict[str, Any] | None = None


class VerifyTagCommand(BaseModel):
    tag_id: str = ""
    fuzzy: bool | None = None
    with_history: bool = True


class TransferCommand(BaseModel):
    serial_number: int
    to_account_id: str | None = None
