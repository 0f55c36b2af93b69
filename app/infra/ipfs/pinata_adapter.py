# app/infra/ipfs/pinata_adapter.py
import os, logging
from typing import Any, Dict, Optional

import httpx

from app.domain.errors import PinningFailed
from app.domain.ports import PinningPort

logger = logging.getLogger("veritas.ipfs")

PINATA_API = os.getenv("PINATA_API_URL", "https://api.pinata.cloud")
PINATA_GATEWAY = os.getenv("PINATA_GATEWAY", "https://gateway.pinata.cloud/ipfs/")


class PinataPinningService(PinningPort):
    def __init__(self, jwt: Optional[str] = None, timeout: float = 20.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.jwt = jwt if jwt is not None else os.getenv("PINATA_JWT", "")
        self.timeout = timeout
        self.transport = transport

    def gateway_url(self, content_address: str) -> str:
        return f"{PINATA_GATEWAY.rstrip('/')}/{content_address}"

    async def pin(self, document: Dict[str, Any], name: Optional[str] = None) -> str:
        if not self.jwt:
            raise PinningFailed("PINATA_JWT not configured")

        body: Dict[str, Any] = {"pinataContent": document}
        if name:
            body["pinataMetadata"] = {"name": name}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as c:
                res = await c.post(
                    f"{PINATA_API}/pinning/pinJSONToIPFS",
                    json=body,
                    headers={"Authorization": f"Bearer {self.jwt}"},
                )
                res.raise_for_status()
                data = res.json()
        except httpx.HTTPStatusError as e:
            raise PinningFailed(f"Pinata returned {e.response.status_code}: {e.response.text[:200]}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise PinningFailed(f"Pinata request failed: {e}") from e

        cid = (data or {}).get("IpfsHash") if isinstance(data, dict) else None
        if not cid:
            raise PinningFailed("Pinata response has no IpfsHash")
        logger.info("[pin] %s pinned as %s", name or "-", cid)
        return cid
