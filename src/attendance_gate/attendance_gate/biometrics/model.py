from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class VerificationResult:
    """Raw answer of the external face verification service."""

    face_detected: bool
    match_score: float
    match: Optional[bool] = None
    reason: str = ""


@dataclass(frozen=True)
class BiometricDecision:
    """Kết quả xác thực khuôn mặt cho một lần chấm công (không lưu trữ)."""

    face_detected: bool
    match_score: float
    passed: bool
    reason: str = ""
    unavailable: bool = False
