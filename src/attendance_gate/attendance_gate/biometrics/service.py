from __future__ import annotations

from typing import Optional, Protocol

from .model import VerificationResult


class VerificationService(Protocol):
    """External face verification capability.

    Implementations raise VerificationNetworkError, VerificationServiceError or
    VerificationTimeout when they cannot answer.
    """

    async def verify(self, image: str, reference: Optional[str] = None) -> VerificationResult:
        raise NotImplementedError
