from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from ..core.constants import (
    DEFAULT_BIOMETRIC_THRESHOLD,
    DEFAULT_REQUIRE_REFERENCE,
    DEFAULT_VERIFY_TIMEOUT_SECONDS,
    NO_ENROLLED_REFERENCE,
    VERIFICATION_UNAVAILABLE,
)
from ..core.exceptions import InfrastructureError
from .model import BiometricDecision, VerificationResult
from .service import VerificationService

logger = structlog.get_logger(__name__)


def clamp_score(value) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(100.0, score))


class BiometricGate:
    """Turns one verification call into a pass/fail decision.

    Stateless: every ``evaluate`` is an independent call to the service.
    """

    def __init__(
        self,
        service: VerificationService,
        *,
        threshold: float = DEFAULT_BIOMETRIC_THRESHOLD,
        timeout_seconds: float = DEFAULT_VERIFY_TIMEOUT_SECONDS,
        require_reference: bool = DEFAULT_REQUIRE_REFERENCE,
    ):
        self._service = service
        self._threshold = float(threshold)
        self._timeout_seconds = float(timeout_seconds)
        self._require_reference = bool(require_reference)

    @property
    def threshold(self) -> float:
        return self._threshold

    def decide(self, result: VerificationResult) -> BiometricDecision:
        score = clamp_score(result.match_score)
        passed = bool(result.face_detected) and (score >= self._threshold or result.match is True)
        return BiometricDecision(
            face_detected=bool(result.face_detected),
            match_score=score,
            passed=passed,
            reason=result.reason or "",
        )

    async def evaluate(
        self,
        image: str,
        reference: Optional[str] = None,
        *,
        timeout_seconds: Optional[float] = None,
    ) -> BiometricDecision:
        if not reference and self._require_reference:
            return BiometricDecision(face_detected=False, match_score=0.0, passed=False, reason=NO_ENROLLED_REFERENCE)

        timeout = self._timeout_seconds if timeout_seconds is None else float(timeout_seconds)
        try:
            result = await asyncio.wait_for(self._service.verify(image, reference or None), timeout=timeout)
        except (asyncio.TimeoutError, InfrastructureError) as e:
            logger.warning("verification_unavailable", error=type(e).__name__, timeout_seconds=timeout)
            return BiometricDecision(
                face_detected=False,
                match_score=0.0,
                passed=False,
                reason=VERIFICATION_UNAVAILABLE,
                unavailable=True,
            )

        return self.decide(result)
