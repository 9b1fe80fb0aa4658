"""Thin client for the Dkron job REST API."""

from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from .env import DEFAULT_HOST, DEFAULT_TIMEOUT
from .logger import get_logger


class DkronError(Exception):
    """Base class for errors talking to the Dkron API."""


class DkronAPIError(DkronError):
    """Non-2xx response. The message is the raw response body, or the status when it is empty."""

    def __init__(self, status_code: int, body: str):
        super().__init__(body or f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class DkronTransportError(DkronError):
    """The request never produced a response (timeout, refused, DNS...)."""


class DkronDecodeError(DkronError):
    """Response body was not the JSON object we expected."""


class DkronClient:
    """
    One request per call, no retries.

    Args:
        host: API base URL including the version prefix, e.g. http://localhost:8080/v1
        timeout: Per-request timeout in seconds
        session: Optional requests.Session (tests pass a fake one)
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = get_logger()

    def _job_url(self, name: Optional[str] = None) -> str:
        if name is None:
            return f"{self.host}/jobs"
        return f"{self.host}/jobs/{quote(name, safe='')}"

    def _request(self, operation: str, method: str, url: str, **kwargs) -> requests.Response:
        """Send one request and turn every failure into a DkronError."""
        self.logger.record_operation_attempt(operation)
        self.logger.record_api_call()
        self.logger.debug(f"{method} {url}", operation=operation)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            self.logger.record_operation_failure(operation, "Timeout")
            self.logger.warning("Dkron request timed out", url=url, operation=operation)
            raise DkronTransportError(f"Dkron request timed out: {method} {url}") from e
        except requests.exceptions.RequestException as e:
            self.logger.record_operation_failure(operation, "RequestException")
            self.logger.error("Dkron request error", url=url, operation=operation, error=str(e))
            raise DkronTransportError(f"Dkron request error: {e}") from e

        if not 200 <= resp.status_code < 300:
            self.logger.record_operation_failure(operation, f"HTTPError_{resp.status_code}")
            self.logger.error(
                "Dkron request failed", url=url, operation=operation, status=resp.status_code
            )
            raise DkronAPIError(resp.status_code, resp.text)

        self.logger.record_operation_success(operation)
        return resp

    @staticmethod
    def _decode(resp: requests.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            raise DkronDecodeError(f"Invalid JSON from Dkron: {e}") from e
        if not isinstance(data, dict):
            raise DkronDecodeError(f"Expected a JSON object from Dkron, got {type(data).__name__}")
        return data

    def create_or_update_job(self, body: Dict[str, Any]) -> requests.Response:
        """POST the full job body. The server creates or overwrites by name."""
        return self._request("create_or_update", "POST", self._job_url(), json=body)

    def show_job_by_name(self, name: str) -> Dict[str, Any]:
        resp = self._request("read", "GET", self._job_url(name))
        return self._decode(resp)

    def delete_job(self, name: str) -> requests.Response:
        return self._request("delete", "DELETE", self._job_url(name))
