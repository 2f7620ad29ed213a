"""Shared HTTP transport utilities for the REST store adapter.

This module provides a thin wrapper around ``requests.Session`` so the
adapter shares one timeout policy, retry behavior and credential handling.

Dependencies:
    - ``requests`` for network I/O.
    - ``cmsdash.adapters.api_errors.ApiTimeoutError`` for typed transport failures.

Call context:
    - Constructed by ``cmsdash/adapters/firestore_rest.py``.
    - Used only inside adapter layer methods; use cases interact through ports.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests import exceptions as req_exc

from cmsdash.adapters.api_errors import ApiError, ApiTimeoutError


@dataclass
class HttpConfig:
    """Timeout and retry configuration for adapter HTTP calls.

    Attributes:
        request_timeout_s: Default timeout in seconds for JSON API calls.
        retries: Number of retry attempts after the initial request.
    """
    request_timeout_s: int = 10
    retries: int = 2


class RetryingSession:
    """Shared requests wrapper with credentials and retry loops.

    This class is transport-only. Callers provide endpoint URLs and decide how
    to map non-2xx responses into domain/use-case errors. Only transport
    failures (timeouts, refused connections) are retried.
    """

    def __init__(
        self,
        cfg: HttpConfig,
        *,
        api_key: Optional[str] = None,
        id_token: Optional[str] = None,
    ) -> None:
        """Create a retry-enabled session.

        Args:
            cfg: Shared timeout and retry settings.
            api_key: Project API key sent as the ``key`` query parameter.
            id_token: Optional bearer token for authenticated requests.

        Side Effects:
            Creates a persistent ``requests.Session`` object.
        """
        self._log = logging.getLogger(__name__)
        self.session = requests.Session()
        self.api_key = api_key
        self.id_token = id_token
        self.cfg = cfg

    def _headers(self, json_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.id_token:
            headers["Authorization"] = f"Bearer {self.id_token}"
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _params(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = dict(params or {})
        if self.api_key:
            merged["key"] = self.api_key
        return merged

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        timeout: Optional[int] = None,
        retry: bool = True,
    ) -> requests.Response:
        """Send one request, retrying transport failures when ``retry`` is set.

        Args:
            method: HTTP verb.
            url: Absolute endpoint URL.
            params: Optional query parameter mapping (list values repeat the key).
            json_body: Optional payload object serialized to JSON text.
            timeout: Optional timeout override in seconds.
            retry: ``False`` sends exactly one attempt.

        Returns:
            ``requests.Response`` from the first attempt that reached the server.

        Raises:
            ApiTimeoutError: If all attempts fail with timeout/connection errors.
            ApiError: For other ``requests`` failures.
        """
        context = f"{method} {url}"
        data = None if json_body is None else json.dumps(json_body)
        attempts = self.cfg.retries + 1 if retry else 1
        last_err: ApiError | None = None
        for attempt in range(1, attempts + 1):
            self._log.debug("%s (attempt %d/%d)", context, attempt, attempts)
            try:
                return self.session.request(
                    method,
                    url,
                    params=self._params(params),
                    data=data,
                    headers=self._headers(json_body=json_body is not None),
                    timeout=timeout or self.cfg.request_timeout_s,
                )
            except (req_exc.Timeout, req_exc.ConnectionError):
                last_err = ApiTimeoutError(f"Timeout contacting {url}", context=context)
            except req_exc.RequestException as exc:
                raise ApiError(str(exc), context=context) from exc
        assert last_err is not None
        raise last_err

    def get(self, url: str, *, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        return self.request("GET", url, params=params)

    def post(
        self, url: str, *, json_body: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        # A create whose response was lost would be applied twice on retry.
        return self.request("POST", url, json_body=json_body, retry=False)

    def patch(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        return self.request("PATCH", url, params=params, json_body=json_body)

    def delete(self, url: str) -> requests.Response:
        return self.request("DELETE", url)


__all__ = ["HttpConfig", "RetryingSession"]
