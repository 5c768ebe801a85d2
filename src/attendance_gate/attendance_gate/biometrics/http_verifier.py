"""
HTTP client for the face verification service.
Posts the captured image (and the enrolled reference) to ``/face/verify``.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..core.constants import DEFAULT_VERIFY_TIMEOUT_SECONDS
from ..core.exceptions import VerificationNetworkError, VerificationServiceError, VerificationTimeout
from .gate import clamp_score
from .model import VerificationResult


class HttpVerificationService:
    """Client for the external verification endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        timeout_seconds: float = DEFAULT_VERIFY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url:
            raise ValueError("Verification service URL is required")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = float(timeout_seconds)
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def verify(self, image: str, reference: Optional[str] = None) -> VerificationResult:
        payload: Dict[str, Any] = {"image": image}
        if reference:
            payload["reference"] = reference

        # A fresh client per call: nothing is cached between verifications.
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            try:
                response = await client.post(f"{self.base_url}/face/verify", json=payload, headers=self._headers())
                response.raise_for_status()
            except httpx.TimeoutException as e:
                raise VerificationTimeout(str(e)) from e
            except httpx.HTTPStatusError as e:
                raise VerificationServiceError(f"Verification service returned {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise VerificationNetworkError(str(e)) from e

        try:
            body = response.json()
        except ValueError as e:
            raise VerificationServiceError("Verification service returned invalid JSON") from e
        return parse_verification_payload(body)


def parse_verification_payload(body: Any) -> VerificationResult:
    """Read a verification answer, bare or wrapped in a ``{"data": ...}`` envelope."""
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        body = body["data"]
    if not isinstance(body, dict):
        raise VerificationServiceError("Unexpected verification payload")

    score = body.get("confidence", body.get("matchScore", 0))
    match = body.get("match")
    return VerificationResult(
        face_detected=bool(body.get("faceDetected", False)),
        match_score=clamp_score(score),
        match=match if isinstance(match, bool) else None,
        reason=str(body.get("reason") or ""),
    )
