# app/application/links.py
import os

HEDERA_NETWORK = os.getenv("HEDERA_NETWORK", "testnet")
EXPLORER_BASE = os.getenv("EXPLORER_BASE", "https://hashscan.io")


def explorer_url(token_id: str, serial_number: int | None = None, network: str = HEDERA_NETWORK) -> str:
    url = f"{EXPLORER_BASE.rstrip('/')}/{network}/token/{token_id}"
    return f"{url}/{serial_number}" if serial_number is not None else url


def transaction_url(transaction_id: str, network: str = HEDERA_NETWORK) -> str:
    return f"{EXPLORER_BASE.rstrip('/')}/{network}/transaction/{transaction_id}"
