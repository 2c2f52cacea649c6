from __future__ import annotations
from typing import Protocol

from alttext.core.models import ImagePayload, InferenceResult


class AltTextClient(Protocol):
    """
    Interface the hosting surfaces (web app, CLI) use to get alt text.
    """

    # Optional: surface the model name for logging/headers
    model: str

    async def infer(self, payload: ImagePayload) -> InferenceResult:
        """
        Describe one image. Never raises for endpoint failures: the outcome,
        success or terminal error, is carried by the returned InferenceResult.
        """
        ...

    async def aclose(self) -> None:
        ...
