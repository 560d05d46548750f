"""
API Transport Module

Thin requests-based wrapper over the pipeline HTTP API. Each method is one
request/response pair; error statuses are turned back into the error classes
the server raised, and network failures become TransportError. Nothing is
retried.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from talent_pipeline.core.config import settings
from talent_pipeline.core.errors import TransportError, error_for_status

logger = logging.getLogger(__name__)


def _quote(segment: str) -> str:
    return requests.utils.quote(segment, safe="")


def _error_detail(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI request validation errors
        return "; ".join(str(item.get("msg", item)) for item in detail)
    return str(detail or body)


class ApiTransport:
    """
    HTTP access to the pipeline API.

    Args:
        base_url: API root including the route prefix, e.g. "http://host:8000/api"
        session: Anything with a requests-style `request()` method
        timeout: Seconds per request; None sends no timeout
    """

    def __init__(self, base_url: str = None, session=None, timeout: Optional[float] = settings.HTTP_TIMEOUT):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, payload: Any = None, params: Dict[str, Any] = None) -> Any:
        url = f"{self.base_url}{path}"
        options = {"timeout": self.timeout} if self.timeout is not None else {}
        try:
            response = self.session.request(method, url, json=payload, params=params, **options)
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Could not reach {url}: {exc}") from exc

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning("%s %s returned %d: %s", method, url, response.status_code, detail)
            raise error_for_status(response.status_code, detail)

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"{method} {url} returned a non-JSON body") from exc

    # === Health ===
    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    # === Partners ===
    def list_partners(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/partners")

    def add_partner(self, name: str) -> Dict[str, Any]:
        return self._request("POST", "/partners", {"name": name})

    # === Clients ===
    def list_clients(self, partner_name: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/clients/{_quote(partner_name)}")

    def create_client(self, partner_name: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"/clients/{_quote(partner_name)}", fields)

    def replace_client(self, client_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/clients/{_quote(client_id)}", record)

    def delete_client(self, client_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/clients/{_quote(client_id)}")

    # === Application tracker ===
    def get_applications(self, partner_name: str, client_id: str, position: int, uid: str = None) -> List[Dict[str, Any]]:
        params = {"uid": uid} if uid else None
        path = f"/applications/{_quote(partner_name)}/{_quote(client_id)}/{position}"
        return self._request("GET", path, params=params)

    def save_applications(
        self,
        partner_name: str,
        client_id: str,
        position: int,
        applications: List[Dict[str, Any]],
        uid: str = None,
        revision: int = None,
    ) -> Dict[str, Any]:
        body = {"applications": applications, "uid": uid, "revision": revision}
        path = f"/applications/{_quote(partner_name)}/{_quote(client_id)}/{position}"
        return self._request("POST", path, body)
