# app/infra/ipfs/gateway_store.py
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import httpx
import yaml

from app.domain.errors import ContentStoreUnreachable
from app.domain.models import ProductRecord
from app.domain.ports import ContentStorePort, FetchedDocument

logger = logging.getLogger("veritas.ipfs")


class GatewayContentStore(ContentStorePort):
    """
    Fetch pinned documents over public IPFS gateways.

    Gateways are tried in a fixed order, each with its own timeout, and the first
    JSON object returned wins. Order comes from (highest priority first):
      - PINATA_GATEWAY (dedicated gateway, always tried first when set)
      - IPFS_GATEWAYS="https://a/ipfs/,https://b/ipfs/"
      - config/gateways.yaml (GATEWAY_CFG)
      - DEFAULT_GATEWAYS
    """
    DEFAULT_GATEWAYS = [
        "https://gateway.pinata.cloud/ipfs/",
        "https://ipfs.io/ipfs/",
        "https://dweb.link/ipfs/",
    ]
    DEFAULT_TIMEOUT = 5.0

    def __init__(
        self,
        gateways: Optional[List[str]] = None,
        timeout: Optional[float] = None,
        cfg_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        cfg = {} if gateways is not None else self._load_cfg(cfg_path)

        if gateways is None:
            env = os.getenv("IPFS_GATEWAYS", "")
            gateways = [g.strip() for g in env.split(",") if g.strip()] or cfg.get("gateways") or self.DEFAULT_GATEWAYS
            dedicated = os.getenv("PINATA_GATEWAY")
            if dedicated:
                gateways = [dedicated] + [g for g in gateways if g != dedicated]

        if timeout is None:
            timeout = float(os.getenv("IPFS_GATEWAY_TIMEOUT", cfg.get("timeout_seconds", self.DEFAULT_TIMEOUT)))

        self.gateways = [self._base(g) for g in gateways]
        self.timeout = timeout
        self.transport = transport

    @staticmethod
    def _load_cfg(cfg_path: Optional[str]) -> Dict[str, Any]:
        path = cfg_path or os.getenv("GATEWAY_CFG", "config/gateways.yaml")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("[gateways] load %s failed: %s, using defaults", path, e)
            return {}

    @staticmethod
    def _base(url: str) -> str:
        return url.rstrip("/") + "/"

    def url_for(self, gateway: str, content_address: str) -> str:
        return f"{gateway}{content_address}"

    async def fetch(self, content_address: str) -> FetchedDocument:
        attempts: List[Dict[str, Any]] = []
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport,
                                     follow_redirects=True) as client:
            for gw in self.gateways:
                url = self.url_for(gw, content_address)
                try:
                    res = await client.get(url, headers={"Accept": "application/json"})
                    res.raise_for_status()
                    doc = res.json()
                    if not isinstance(doc, dict):
                        raise ValueError(f"expected a JSON object, got {type(doc).__name__}")
                except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                    # InvalidURL: control characters in an address read back from chain
                    err = str(e) or type(e).__name__
                    logger.warning("[ipfs] %s failed via %s: %s", content_address, gw, err)
                    attempts.append({"endpoint": gw, "ok": False, "error": err})
                    continue

                attempts.append({"endpoint": gw, "ok": True, "error": None})
                logger.info("[ipfs] %s fetched via %s (attempt %d)", content_address, gw, len(attempts))
                return FetchedDocument(ProductRecord.from_document(doc), gw, attempts)

        raise ContentStoreUnreachable(content_address, attempts)
