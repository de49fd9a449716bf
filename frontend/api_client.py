"""HTTP client used by the Streamlit dashboard.

Keeps all transport code out of the rendering script. Every method returns
plain JSON-decoded payloads or raw CSV bytes; HTTP errors surface as
``DashboardAPIError`` carrying the server's ``detail`` message.
"""

from __future__ import annotations

import os
from typing import Any, Optional

import requests

_DEFAULT_TIMEOUT_SECONDS = 15.0


class DashboardAPIError(RuntimeError):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, detail: Any) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(self._message(detail))

    @staticmethod
    def _message(detail: Any) -> str:
        if isinstance(detail, dict):
            return str(detail.get("message") or detail)
        return str(detail)


class DashboardAPIClient:
    """Thin wrapper around the validation API endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        resolved = base_url or os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
        self._base_url = resolved.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout_seconds

    # -- batches ------------------------------------------------------------

    def start_validation(self, filename: str, content: bytes) -> dict[str, Any]:
        files = {"file": (filename, content, "text/csv")}
        return self._request("POST", "/validations", files=files).json()

    def retry_failed(self) -> dict[str, Any]:
        return self._request("POST", "/validations/retry").json()

    def cancel(self) -> bool:
        return bool(self._request("POST", "/validations/cancel").json().get("cancelled"))

    def status(self) -> dict[str, Any]:
        return self._request("GET", "/validations/status").json()

    # -- data ---------------------------------------------------------------

    def records(self) -> list[dict[str, Any]]:
        return self._request("GET", "/records").json().get("records", [])

    def failures(self) -> dict[str, list[dict[str, Any]]]:
        return self._request("GET", "/failures").json()

    def notifications(self, since: int = 0) -> list[dict[str, Any]]:
        response = self._request("GET", "/notifications", params={"since": since})
        return response.json().get("notifications", [])

    def export_results(self) -> Optional[bytes]:
        return self._download("/export/results.csv")

    def export_failures(self) -> Optional[bytes]:
        return self._download("/export/failures.csv")

    def generate_description(self, app_name: str, category: str) -> str:
        response = self._request(
            "POST",
            "/descriptions",
            json={"appName": app_name, "category": category},
        )
        return str(response.json().get("description", ""))

    # -- internals ----------------------------------------------------------

    def _download(self, path: str) -> Optional[bytes]:
        """Return CSV bytes, or None when the API has nothing to export."""
        try:
            return self._request("GET", path).content
        except DashboardAPIError as exc:
            if exc.status_code == 404:
                return None
            raise

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        response = self._session.request(
            method,
            f"{self._base_url}{path}",
            timeout=self._timeout,
            **kwargs,
        )
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise DashboardAPIError(response.status_code, detail)
        return response


def fetch_exports(client: DashboardAPIClient, running: bool) -> tuple[Optional[bytes], Optional[bytes]]:
    """Return (results CSV, failures CSV); nothing is fetched while a batch runs."""
    if running:
        return None, None
    return client.export_results(), client.export_failures()
