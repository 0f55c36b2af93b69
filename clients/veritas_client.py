import requests
from typing import Optional, Dict, Any


class VeritasApiError(Exception):
    def __init__(self, status_code: int, error: str, message: str):
        super().__init__(f"{status_code} {error}: {message}")
        self.status_code = status_code
        self.error = error
        self.message = message


class VeritasClient:
    """Sync client for the manufacturer portal and scan app."""

    def __init__(self, base_url: str, api_key: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["X-Api-Key"] = api_key

    def _headers(self, session_id: Optional[str] = None) -> Dict[str, str]:
        h = dict(self.headers)
        if session_id: h["X-Session-Id"] = session_id
        return h

    @staticmethod
    def _json(r: requests.Response) -> Dict[str, Any]:
        if r.ok:
            return r.json()
        try:
            body = r.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        raise VeritasApiError(
            r.status_code,
            body.get("error") or r.reason or "HTTPError",
            body.get("message") or str(body.get("detail") or r.text[:200]),
        )

    def health(self, timeout: int = 10) -> Dict[str, Any]:
        return self._json(requests.get(f"{self.base_url}/health", timeout=timeout))

    def pin(self, *, product_data: Dict[str, Any], tag_id: Optional[str] = None, timeout: int = 30) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"productData": product_data}
        if tag_id: payload["tagId"] = tag_id
        r = requests.post(f"{self.base_url}/pin", json=payload, headers=self._headers(), timeout=timeout)
        return self._json(r)

    def mint(self, *, tag_id: str, content_address: str, product_data: Optional[Dict[str, Any]] = None, timeout: int = 60) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"tagId": tag_id, "contentAddress": content_address}
        if product_data: payload["productData"] = product_data
        r = requests.post(f"{self.base_url}/mint", json=payload, headers=self._headers(), timeout=timeout)
        return self._json(r)

    def verify(self, *, tag_id: str, session_id: Optional[str] = None, fuzzy: Optional[bool] = None, timeout: int = 60) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"tagId": tag_id}
        if fuzzy is not None: payload["fuzzy"] = fuzzy
        r = requests.post(f"{self.base_url}/verify", json=payload, headers=self._headers(session_id), timeout=timeout)
        return self._json(r)

    def login(self, *, account_id: str, display_name: Optional[str] = None, timeout: int = 10) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"accountId": account_id}
        if display_name: payload["displayName"] = display_name
        r = requests.post(f"{self.base_url}/session", json=payload, headers=self._headers(), timeout=timeout)
        return self._json(r)

    def session(self, *, session_id: str, timeout: int = 10) -> Dict[str, Any]:
        return self._json(requests.get(f"{self.base_url}/session/{session_id}", timeout=timeout))

    def transfer(self, *, session_id: str, serial_number: int, to_account_id: Optional[str] = None, timeout: int = 60) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"serialNumber": serial_number}
        if to_account_id: payload["toAccountId"] = to_account_id
        r = requests.post(f"{self.base_url}/transfer", json=payload, headers=self._headers(session_id), timeout=timeout)
        return self._json(r)

    def token(self, *, collection_id: str, serial_number: int, timeout: int = 30) -> Dict[str, Any]:
        return self._json(requests.get(f"{self.base_url}/token/{collection_id}/{serial_number}", timeout=timeout))

    def history(self, *, collection_id: str, serial_number: int, timeout: int = 30) -> Dict[str, Any]:
        return self._json(requests.get(f"{self.base_url}/token/{collection_id}/{serial_number}/history", timeout=timeout))
