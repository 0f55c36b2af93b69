# app/domain/documents.py
"""
Normalisation of pinned product documents.

Two shapes exist on IPFS:

  flat (portal mints)      {"name", "category", "manufacturer", "manufacturingDate",
                            "serialNumber", "description", "nfcSerialId", "timestamp", "version"}
  attributes (script mints) {"name", "description", "image",
                            "attributes": [{"trait_type": "NFC_Serial_ID", "value": ...}, ...]}

Both map onto the canonical flat shape below. Pure field mapping, idempotent.
"""
from __future__ import annotations
from typing import Any, Dict, Optional

CANONICAL_KEYS = (
    "name", "category", "manufacturer", "manufacturingDate", "serialNumber",
    "description", "image", "tagId", "version", "timestamp",
)

ATTRIBUTES_VERSION = "attributes-1"
FLAT_VERSION = "1.0"

# trait_type (lower-cased, "_"/" " stripped) -> canonical key
_TRAITS = {
    "nfcserialid": "tagId",
    "tagid": "tagId",
    "category": "category",
    "manufacturer": "manufacturer",
    "manufacturingdate": "manufacturingDate",
    "serialnumber": "serialNumber",
}


def _first(doc: Dict[str, Any], *keys: str) -> Optional[Any]:
    for k in keys:
        v = doc.get(k)
        if v not in (None, ""):
            return v
    return None


def _trait_key(trait_type: Any) -> str:
    return str(trait_type or "").lower().replace("_", "").replace(" ", "")


def is_attributes_shape(doc: Dict[str, Any]) -> bool:
    return isinstance(doc.get("attributes"), list)


def _from_attributes(doc: Dict[str, Any]) -> Dict[str, Any]:
    traits: Dict[str, Any] = {}
    for item in doc.get("attributes") or []:
        if not isinstance(item, dict):
            continue
        key = _TRAITS.get(_trait_key(item.get("trait_type")))
        if key and key not in traits and item.get("value") not in (None, ""):
            traits[key] = item["value"]
    return {
        "name": _first(doc, "name"),
        "category": traits.get("category"),
        "manufacturer": traits.get("manufacturer"),
        "manufacturingDate": traits.get("manufacturingDate"),
        "serialNumber": traits.get("serialNumber"),
        "description": _first(doc, "description"),
        "image": _first(doc, "image"),
        "tagId": traits.get("tagId"),
        "version": _first(doc, "version") or ATTRIBUTES_VERSION,
        "timestamp": _first(doc, "timestamp"),
    }


def _from_flat(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": _first(doc, "name", "productName"),
        "category": _first(doc, "category", "productCategory"),
        "manufacturer": _first(doc, "manufacturer"),
        "manufacturingDate": _first(doc, "manufacturingDate", "manufacturing_date"),
        "serialNumber": _first(doc, "serialNumber", "serial_number"),
        "description": _first(doc, "description"),
        "image": _first(doc, "image"),
        "tagId": _first(doc, "tagId", "nfcSerialId", "nfc", "tag_id"),
        "version": _first(doc, "version") or FLAT_VERSION,
        "timestamp": _first(doc, "timestamp", "createdAt"),
    }


def normalize_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(doc, dict):
        raise TypeError(f"document must be a JSON object, got {type(doc).__name__}")
    out = _from_attributes(doc) if is_attributes_shape(doc) else _from_flat(doc)
    # values are carried as strings so a second pass cannot change them
    return {k: (None if out.get(k) is None else str(out[k])) for k in CANONICAL_KEYS}
