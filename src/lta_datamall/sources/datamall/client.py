from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import requests

from lta_datamall.utils.provider_config_loader import ProviderConfig, build_auth_headers_and_params


logger = logging.getLogger(__name__)

PROVIDER_PATH = "provider.datamall"
DEFAULT_BASE_URL = "https://datamall2.mytransport.sg/ltaodataservice"


class DataMallError(Exception):
    """An upstream call failed at the HTTP layer (non-2xx status or no response at all)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


def _upstream_message(resp: Optional[requests.Response]) -> Optional[str]:
    """DataMall error bodies look like {"Message": "..."}; anything else yields None."""
    if resp is None:
        return None
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("Message") is not None:
        return str(body["Message"])
    return None


class DataMallClient:
    """
    Thin GET-only client for the DataMall REST API.

    Every request carries the auth headers built once at construction time
    plus `accept: application/json`. No retries and no caching.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
        timeout_s: Optional[float] = None,
        verify_tls: bool = True,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers: Dict[str, str] = {**(headers or {}), "accept": "application/json"}
        self.params: Dict[str, str] = dict(params or {})
        self.timeout_s = timeout_s
        self.verify_tls = verify_tls
        # No injected session: each call goes through requests.get, so worker threads share nothing.
        self._session = session

    @classmethod
    def from_config(
        cls,
        cfg: ProviderConfig,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> "DataMallClient":
        headers, params = build_auth_headers_and_params(cfg, f"{PROVIDER_PATH}.auth", api_key)
        timeout = cfg.get(f"{PROVIDER_PATH}.timeout_s")

        if headers:
            logger.info("Auth enabled via headers (keys=%s)", list(headers.keys()))
        elif params:
            logger.info("Auth enabled via query params (keys=%s)", list(params.keys()))
        else:
            logger.info("Auth mode: none")

        return cls(
            base_url=str(cfg.get(f"{PROVIDER_PATH}.base_url", DEFAULT_BASE_URL) or DEFAULT_BASE_URL),
            headers=headers,
            params=params,
            timeout_s=float(timeout) if timeout is not None else None,
            verify_tls=bool(cfg.get(f"{PROVIDER_PATH}.verify_tls", True)),
            session=session,
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get(self, path: str, params: Optional[Mapping[str, str]] = None) -> Any:
        """
        GET <base_url>/<path> and return the decoded JSON body.

        Raises DataMallError for any requests-level failure. A 2xx body that
        is not JSON is returned as text.
        """
        url = self.url_for(path)
        query = {**self.params, **(params or {})}

        try:
            http = self._session if self._session is not None else requests
            r = http.get(
                url,
                headers=self.headers,
                params=query,
                timeout=self.timeout_s,
                verify=self.verify_tls,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            resp = getattr(e, "response", None)
            status = getattr(resp, "status_code", None)
            message = _upstream_message(resp)
            if message is None:
                message = str(e)
            logger.warning("Upstream call failed | url=%s | status=%s | message=%s", url, status, message)
            raise DataMallError(message, status=status) from e

        logger.debug("Upstream call ok | url=%s | status=%s", url, r.status_code)
        try:
            return r.json()
        except ValueError:
            return r.text
