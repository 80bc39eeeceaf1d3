"""Analytics Reporting API v4 backend adapter with httpx transport injection."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import httpx
from google.auth import exceptions as auth_exceptions
from google.auth.credentials import Credentials
from google.auth.transport.requests import Request as AuthRequest

from pageview_service.domain.exceptions import (
    BackendAuthError,
    BackendContractViolation,
    BackendRateLimitError,
    BackendTransportError,
    BackendUnavailableError,
)
from pageview_service.domain.models import RawRow, ReportRequest

from .base import BaseBackend

BATCH_GET_PATH = "/v4/reports:batchGet"
DEFAULT_BASE_URL = "https://analyticsreporting.googleapis.com"


class ReportingApiBackend(BaseBackend):
    """Sends each report request as its own ``reports:batchGet`` call.

    Without credentials requests go out unauthenticated. Otherwise the
    access token is refreshed on demand and sent as a bearer header.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        *,
        base_url: str = DEFAULT_BASE_URL,
        credentials: Optional[Credentials] = None,
        auth_request: Optional[Any] = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__()
        self._http = http_client
        self._base_url = base_url
        self._credentials = credentials
        self._auth_request = auth_request
        self._refresh_lock = threading.Lock()
        self._timeout = timeout

    def _fetch_rows(self, request: ReportRequest) -> List[RawRow]:
        payload = {"reportRequests": [request.to_payload()]}
        headers = self._headers()
        try:
            http_response = self._http.post(
                self._endpoint(),
                json=payload,
                headers=headers,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise BackendTransportError(
                "Analytics backend request failed",
                context={"error": exc.__class__.__name__},
            ) from exc

        return self._map_response(http_response)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _endpoint(self) -> str:
        return f"{self._base_url.rstrip('/')}{BATCH_GET_PATH}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._credentials is not None:
            headers["Authorization"] = f"Bearer {self._access_token()}"
        return headers

    def _access_token(self) -> str:
        with self._refresh_lock:
            if not self._credentials.valid:
                if self._auth_request is None:
                    self._auth_request = AuthRequest()
                try:
                    self._credentials.refresh(self._auth_request)
                except auth_exceptions.RefreshError as exc:
                    raise BackendAuthError(
                        "Could not refresh analytics access token"
                    ) from exc
                except auth_exceptions.TransportError as exc:
                    raise BackendTransportError(
                        "Token endpoint unreachable"
                    ) from exc
            return self._credentials.token

    def _map_response(self, http_response: httpx.Response) -> List[RawRow]:
        status = http_response.status_code

        if status in (401, 403):
            raise BackendAuthError(
                self._error_message(http_response, "Analytics backend rejected credentials"),
                context={"status_code": status},
            )
        if status == 429:
            raise BackendRateLimitError(
                self._error_message(http_response, "Analytics backend quota exceeded"),
                context={"status_code": status},
            )
        if status >= 500:
            raise BackendUnavailableError(
                self._error_message(http_response, "Analytics backend unavailable"),
                context={"status_code": status},
            )
        if status >= 400:
            raise BackendTransportError(
                self._error_message(http_response, "Analytics backend request failed"),
                context={"status_code": status},
            )

        try:
            data = http_response.json()
        except ValueError as exc:
            raise BackendContractViolation(
                "Analytics backend returned non-JSON body",
                context={"status_code": status},
            ) from exc
        return self._extract_rows(data)

    def _extract_rows(self, data: Any) -> List[RawRow]:
        try:
            report = data["reports"][0]
            raw_rows = report.get("data", {}).get("rows", [])
            rows = []
            for raw in raw_rows:
                dimension_key = raw["dimensions"][0]
                metric_value = raw["metrics"][0]["values"][0]
                rows.append(
                    RawRow(
                        dimension_key=str(dimension_key),
                        metric_value=str(metric_value),
                    )
                )
            return rows
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise BackendContractViolation(
                "Malformed analytics report", context={"data": data}
            ) from exc

    @staticmethod
    def _error_message(http_response: httpx.Response, default: str) -> str:
        try:
            data = http_response.json()
        except ValueError:
            return default
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return default
