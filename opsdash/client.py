"""Data accessors used by the Streamlit pages.

Every call goes to the REST service and comes back as an `ApiResult`; transport
errors, non-JSON bodies and `{success: false}` envelopes are logged and turned
into `ApiResult(success=False, error=...)` instead of raising. Nothing is
retried.

The HTTP session is injectable: a `requests.Session` in the app, a FastAPI
`TestClient` in tests (both speak `request(method, url, ...)`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence

import requests

from opsdash.config import AppConfig, get_config

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"
CHAT_ID_HEADER = "X-Chat-Id"


@dataclass(frozen=True)
class ApiResult:
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ApiResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResult":
        return cls(success=False, error=error)


@dataclass
class CompletionStream:
    """Open streaming response for an onboarding completion."""

    chat_id: Optional[str]
    chunks: Iterator[str]
    response: Any = None

    def close(self) -> None:
        if self.response is not None:
            try:
                self.response.close()
            except requests.RequestException:
                logger.debug("closing completion stream failed", exc_info=True)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        user_id: Optional[str] = None,
        session: Any = None,
        timeout: float = 15.0,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.user_id = user_id
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    @classmethod
    def from_config(cls, user_id: Optional[str], config: Optional[AppConfig] = None) -> "ApiClient":
        cfg = config or get_config()
        return cls(cfg.api_url, user_id=user_id, timeout=cfg.request_timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.user_id:
            headers[USER_HEADER] = str(self.user_id)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> ApiResult:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            return ApiResult.fail(f"Request failed: {exc}")

        try:
            payload = resp.json()
        except ValueError:
            logger.error("%s %s returned a non-JSON body (HTTP %s)", method, path, resp.status_code)
            return ApiResult.fail(f"Unexpected response (HTTP {resp.status_code})")

        if isinstance(payload, dict) and "success" in payload:
            if payload.get("success"):
                return ApiResult.ok(payload.get("data"))
            error = str(payload.get("error") or f"HTTP {resp.status_code}")
            logger.warning("%s %s rejected: %s", method, path, error)
            return ApiResult.fail(error)

        if resp.status_code < 400:
            return ApiResult.ok(payload)
        logger.warning("%s %s failed with HTTP %s", method, path, resp.status_code)
        return ApiResult.fail(f"HTTP {resp.status_code}")

    # ---------------- Jobs ----------------

    def list_jobs(self) -> ApiResult:
        return self._request("GET", "/api/jobs")

    def get_job(self, job_id: str) -> ApiResult:
        return self._request("GET", f"/api/jobs/{job_id}")

    def create_job(self, fields: Dict[str, Any]) -> ApiResult:
        return self._request("POST", "/api/jobs", json=fields)

    def update_job(self, job_id: str, changes: Dict[str, Any]) -> ApiResult:
        return self._request("PUT", f"/api/jobs/{job_id}", json=changes)

    def delete_job(self, job_id: str) -> ApiResult:
        return self._request("DELETE", f"/api/jobs/{job_id}")

    def job_progress(self, job_ids: Sequence[str]) -> ApiResult:
        return self._request("GET", "/api/jobs/progress", params={"ids": ",".join(job_ids)})

    def job_task_counts(self, job_id: str) -> ApiResult:
        return self._request("POST", "/api/jobs/progress", json={"jobId": job_id})

    # ---------------- Tasks ----------------

    def list_tasks(self, job_id: Optional[str] = None) -> ApiResult:
        params = {"jobId": job_id} if job_id else None
        return self._request("GET", "/api/tasks", params=params)

    def get_task(self, task_id: str) -> ApiResult:
        return self._request("GET", f"/api/tasks/{task_id}")

    def create_task(self, fields: Dict[str, Any]) -> ApiResult:
        return self._request("POST", "/api/tasks", json=fields)

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> ApiResult:
        return self._request("PUT", f"/api/tasks/{task_id}", json=changes)

    def delete_task(self, task_id: str) -> ApiResult:
        return self._request("DELETE", f"/api/tasks/{task_id}")

    # ---------------- Reference data ----------------

    def list_owners(self) -> ApiResult:
        result = self._request("GET", "/api/owners")
        if result.success and not isinstance(result.data, list):
            return ApiResult.fail("Unexpected owners payload")
        return result

    def list_business_functions(self) -> ApiResult:
        return self._request("GET", "/api/business-functions")

    # ---------------- QBOs ----------------

    def list_qbos(self) -> ApiResult:
        return self._request("GET", "/api/qbos")

    def create_qbo(self, fields: Dict[str, Any]) -> ApiResult:
        return self._request("POST", "/api/qbos", json=fields)

    def update_qbo(self, qbo_id: str, changes: Dict[str, Any]) -> ApiResult:
        return self._request("PUT", f"/api/qbos/{qbo_id}", json=changes)

    def delete_qbo(self, qbo_id: str) -> ApiResult:
        return self._request("DELETE", f"/api/qbos/{qbo_id}")

    # ---------------- Search / onboarding / calendar ----------------

    def search(self, query: str) -> ApiResult:
        return self._request("GET", "/api/search", params={"query": query})

    def save_business_info(self, fields: Dict[str, Any]) -> ApiResult:
        return self._request("POST", "/api/business-info", json=fields)

    def get_chat_history(self, chat_id: str) -> ApiResult:
        return self._request("GET", f"/api/chat-history/{chat_id}")

    def calendar_auth_url(self) -> ApiResult:
        return self._request("GET", "/api/calendar/auth-url")

    def stream_onboarding(self, payload: Dict[str, Any]) -> ApiResult:
        """Open the onboarding completion stream; data is a `CompletionStream`."""
        url = f"{self.base_url}/api/onboarding"
        try:
            resp = self.session.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
                stream=True,
            )
        except requests.RequestException as exc:
            logger.error("POST /api/onboarding failed: %s", exc)
            return ApiResult.fail(f"Request failed: {exc}")

        if resp.status_code >= 400:
            logger.warning("POST /api/onboarding failed with HTTP %s", resp.status_code)
            resp.close()
            return ApiResult.fail(f"Server error: {resp.status_code}")

        if not resp.encoding:
            resp.encoding = "utf-8"
        chunks = (c for c in resp.iter_content(chunk_size=None, decode_unicode=True) if c)
        return ApiResult.ok(
            CompletionStream(chat_id=resp.headers.get(CHAT_ID_HEADER), chunks=chunks, response=resp)
        )


def unwrap_list(result: ApiResult) -> List[Dict[str, Any]]:
    """Records from a successful list result, [] otherwise."""
    if result.success and isinstance(result.data, list):
        return result.data
    return []
