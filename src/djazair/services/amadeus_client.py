# src/djazair/services/amadeus_client.py

import logging
import os
import time
from typing import Any, Dict, Optional

import requests

from djazair.providers.base import ProviderError, ProviderUnavailable, RateLimited

logger = logging.getLogger(__name__)


class AmadeusClient:
    """
    Minimal Amadeus REST client with OAuth2 client-credentials token caching.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        env: Optional[str] = None,
        timeout_seconds: int = 20,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = (client_id or os.getenv(
            "AMADEUS_CLIENT_ID", "")).strip()
        self.client_secret = (client_secret or os.getenv(
            "AMADEUS_CLIENT_SECRET", "")).strip()
        self.env = (env or os.getenv("AMADEUS_ENV", "test")).strip().lower()
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

        # Base URLs for Self-Service APIs
        self.base_url = (
            "https://test.api.amadeus.com"
            if self.env == "test"
            else "https://api.amadeus.com"
        )

        self._access_token: Optional[str] = None
        self._token_expiry_epoch: float = 0.0  # seconds since epoch

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _token_is_valid(self) -> bool:
        # Refresh 60 seconds early
        return bool(self._access_token) and (time.time() < (self._token_expiry_epoch - 60))

    def _fetch_token(self) -> None:
        if not self.is_configured():
            raise ProviderUnavailable(
                "Missing Amadeus credentials. Set AMADEUS_CLIENT_ID and AMADEUS_CLIENT_SECRET."
            )

        url = f"{self.base_url}/v1/security/oauth2/token"
        data = {"grant_type": "client_credentials"}
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        try:
            resp = self.session.post(
                url,
                data=data,
                headers=headers,
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            raise ProviderUnavailable(f"Amadeus token endpoint unreachable: {e}") from e

        # Helpful error detail without leaking secrets
        details = {"body": resp.text[:500]}
        if resp.status_code == 429:
            raise RateLimited(
                "Amadeus rate limit hit on token request",
                retry_after=self._retry_after(resp),
                details=details,
            )
        if resp.status_code >= 500:
            raise ProviderError(
                f"Amadeus token request failed: {resp.status_code}",
                status_code=resp.status_code,
                details=details,
            )
        if resp.status_code != 200:
            # 401/403: credentials rejected
            raise ProviderUnavailable(
                f"Amadeus token request failed: {resp.status_code}",
                details=details,
            )

        payload = resp.json()
        self._access_token = payload["access_token"]
        expires_in = int(payload.get("expires_in", 1800))
        self._token_expiry_epoch = time.time() + expires_in
        logger.debug("Fetched Amadeus access token")

    def _get_auth_header(self) -> Dict[str, str]:
        if not self._token_is_valid():
            self._fetch_token()
        return {"Authorization": f"Bearer {self._access_token}"}

    @staticmethod
    def _retry_after(resp: requests.Response) -> Optional[float]:
        value = resp.headers.get("Retry-After")
        try:
            return float(value) if value else None
        except ValueError:
            return None

    def get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = self._get_auth_header()
        resp = self.session.get(url, params=params,
                                headers=headers, timeout=self.timeout_seconds)

        # If token expired unexpectedly, refresh once and retry
        if resp.status_code == 401:
            self._fetch_token()
            headers = self._get_auth_header()
            resp = self.session.get(url, params=params,
                                    headers=headers, timeout=self.timeout_seconds)

        if resp.status_code == 429:
            raise RateLimited(
                f"Amadeus rate limit hit on {path}",
                retry_after=self._retry_after(resp),
            )

        if resp.status_code >= 400:
            raise ProviderError(
                f"Amadeus request failed: {resp.status_code}",
                status_code=resp.status_code,
                details={"path": path, "body": resp.text[:500]},
            )

        return resp.json()
