# pipeline/transport.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests

from .errors import TransportError
from .payload import summarize_payload

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    success: bool
    job_id: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class JobStatus:
    status: str  # "processing" | "completed" | "failed"
    result: Optional[dict] = None
    error: Optional[str] = None


class CloudUploader:
    """
    Sends detection payloads to the deeper-analysis service.

    Failures never raise out of upload(): they come back as an UploadResult
    with the error message, so callers can retry or report.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str | None = None,
        timeout_s: float = 30.0,
        session: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.sleep = sleep

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            resp = self.session.request(method, url, headers=self._headers(), timeout=self.timeout_s, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc

        if not resp.ok:
            raise TransportError(f"HTTP error! status: {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError("Invalid JSON in response") from exc

    def upload(self, payload: dict) -> UploadResult:
        log.info("Uploading to cloud: %s %s", self.endpoint, summarize_payload(payload))
        try:
            data = self._request("POST", self.endpoint, json=payload)
        except TransportError as exc:
            log.warning("Cloud upload failed: %s", exc)
            return UploadResult(success=False, error=str(exc))

        job_id = data.get("jobId") if isinstance(data, dict) else None
        return UploadResult(success=True, job_id=job_id)

    def upload_with_retry(self, payload: dict, max_retries: int = 3) -> UploadResult:
        """Retry with exponential backoff (2**attempt seconds between attempts)."""
        last_error = ""
        for attempt in range(1, max_retries + 1):
            log.info("Upload attempt %d/%d", attempt, max_retries)
            result = self.upload(payload)
            if result.success:
                return result

            last_error = result.error or "Unknown error"
            if attempt < max_retries:
                delay = 2 ** attempt
                log.info("Retrying in %ds...", delay)
                self.sleep(delay)

        return UploadResult(success=False, error=f"Failed after {max_retries} attempts: {last_error}")

    def check_job_status(self, job_id: str) -> JobStatus:
        try:
            data = self._request("GET", f"{self.endpoint}/status/{job_id}")
        except TransportError as exc:
            return JobStatus(status="failed", error=str(exc))

        return JobStatus(
            status=data.get("status", "processing"),
            result=data.get("result"),
            error=data.get("error"),
        )
