import logging
from typing import NamedTuple

import requests

from config import HUBSPOT_BASE, HUBSPOT_TIMEOUT, TOKEN_PLACEHOLDER

logger = logging.getLogger(__name__)


class HubSpotError(Exception):
    reason = "upstream_error"
    message = "HubSpot request failed. Check token permissions and try again."

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.message)
        self.detail = detail


class CredentialMissing(HubSpotError):
    reason = "token_not_configured"
    message = "HubSpot token not configured. Set HUBSPOT_TOKEN in the .env file."


class UpstreamUnavailable(HubSpotError):
    reason = "upstream_error"
    message = "HubSpot could not be reached. Check your network connection and try again."


class UnsupportedEndpoint(HubSpotError):
    reason = "unsupported"
    message = "This HubSpot API is not available in this account or token scope. Check token permissions."


class ApiResponse(NamedTuple):
    ok: bool
    code: int
    data: object
    error: str | None = None
    text: str = ""


def token_configured(token: str | None) -> bool:
    return bool(token) and token != TOKEN_PLACEHOLDER


def debug_descriptor(token: str | None, base_url: str = HUBSPOT_BASE) -> dict:
    """Operator-facing token status. Never used for authorization."""
    return {
        "tokenConfigured": token_configured(token),
        "tokenLength": len(token or ""),
        "hubspotBase": base_url,
    }


class HubSpotClient:
    """
    Minimal HubSpot client for:
      - GET/POST JSON calls with a private-app bearer token
      - soft failures: HTTP errors come back as ApiResponse(ok=False),
        transport errors raise UpstreamUnavailable
    """

    def __init__(self, token: str | None, base_url: str = HUBSPOT_BASE, timeout: float = HUBSPOT_TIMEOUT):
        self.token = token or ""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self.headers_json = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @property
    def configured(self) -> bool:
        return token_configured(self.token)

    # ---------------------------------------------------------------------
    # Requests
    # ---------------------------------------------------------------------
    def request(self, method: str, path: str, query: dict | None = None, body=None) -> ApiResponse:
        if not self.configured:
            raise CredentialMissing("HubSpot token not configured")

        url = path if path.startswith("http") else f"{self.base_url}{path}"
        try:
            r = requests.request(
                method,
                url,
                headers=self.headers_json,
                params=query or None,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("HubSpot %s %s failed: %s", method, path, e)
            raise UpstreamUnavailable(str(e)) from e

        try:
            data = r.json()
        except ValueError:
            data = None

        ok = 200 <= r.status_code < 300
        if not ok:
            logger.warning("HubSpot %s %s returned %s", method, path, r.status_code)
            return ApiResponse(False, r.status_code, data, r.text[:500])
        return ApiResponse(True, r.status_code, data, None, r.text)

    def get(self, path: str, query: dict | None = None) -> ApiResponse:
        return self.request("GET", path, query=query)

    def post(self, path: str, body: dict, query: dict | None = None) -> ApiResponse:
        return self.request("POST", path, query=query, body=body)

    # ---------------------------------------------------------------------
    # Diagnostics
    # ---------------------------------------------------------------------
    def ping(self) -> dict:
        """
        One small forms call to check the token and connectivity.
        Returns {code, ok, error, preview}; never raises.
        """
        try:
            r = self.get("/marketing/v3/forms", {"limit": 5})
        except HubSpotError as e:
            return {"code": 0, "ok": False, "error": e.reason, "preview": ""}
        preview = r.text if r.ok else r.error
        return {"code": r.code, "ok": r.ok, "error": None if r.ok else "http_error", "preview": (preview or "")[:200]}


def expect_container(response: ApiResponse, *keys) -> list:
    """
    The list under the first of `keys` present in a successful response.
    A non-2xx status or a body without any of them means the feature is not
    there for this account, which is not the same thing as "no results".
    """
    if not response.ok:
        raise UnsupportedEndpoint(f"HTTP {response.code}")
    data = response.data if isinstance(response.data, dict) else {}
    for key in keys:
        if isinstance(data.get(key), list):
            return data[key]
    raise UnsupportedEndpoint(f"response has none of {', '.join(keys)}")
