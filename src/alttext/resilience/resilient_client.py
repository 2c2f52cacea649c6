from __future__ import annotations
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx

from alttext.core.errors import (
    InferenceError,
    NoDescriptionProduced,
    NoResponseObtained,
    NonSuccessStatus,
    RateLimited,
    RateLimitExhausted,
    TransportFailure,
    TransportFailureExhausted,
)
from alttext.core.models import ImagePayload, InferenceRequest, InferenceResult, extract_description

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "Describe this image in a concise and detailed manner for alt text purposes. "
    "Focus on key visual elements, colors, and the subject matter. Start directly "
    "with the description without any introductory phrases like 'The image shows...'"
)

Sleep = Callable[[float], Awaitable[None]]


class RetryPolicy:
    def __init__(self, max_attempts=5, base_delay=1.0, max_delay: Optional[float] = 30.0, jitter=0.0):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter

    def compute_sleep(self, delay: float) -> float:
        if self.max_delay is not None:
            delay = min(self.max_delay, delay)
        return delay + (random.random() * self.jitter if self.jitter else 0.0)


@dataclass
class RetryState:
    attempt: int = 0
    delay: float = 1.0


@dataclass(frozen=True)
class EndpointConfig:
    model: str
    base_url: str
    api_key: str = ""
    timeout: Optional[float] = 60.0
    prompt: str = DEFAULT_PROMPT

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"


class ResilientInferenceClient:
    """
    Sends one image to a generateContent endpoint and retries with exponential
    backoff. HTTP 429, other non-2xx replies and transport failures all draw
    from the same attempt budget and the same doubling delay.

    Cancel the task awaiting infer() to abandon pending retries; the sleep
    and the in-flight request are released with it.
    """

    def __init__(
        self,
        endpoint: EndpointConfig,
        policy: Optional[RetryPolicy] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.endpoint = endpoint
        self.policy = policy or RetryPolicy()
        self.model = endpoint.model
        self._sleep = sleep
        self._http = httpx.AsyncClient(
            transport=transport,
            timeout=endpoint.timeout,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "ResilientInferenceClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(self, request: InferenceRequest) -> httpx.Response:
        # the key never goes into the URL
        try:
            return await self._http.post(
                self.endpoint.url,
                headers={"x-goog-api-key": self.endpoint.api_key},
                json=request.to_json(),
            )
        except httpx.RequestError as e:
            raise TransportFailure(e) from e

    async def _backoff(self, state: RetryState) -> None:
        await self._sleep(self.policy.compute_sleep(state.delay))
        state.delay *= 2

    def _failed(self, error: InferenceError, calls: int) -> InferenceResult:
        logger.error("Alt text request failed after %d call(s): %s", calls, error)
        return InferenceResult(error=error, attempts=calls)

    async def infer(self, payload: ImagePayload) -> InferenceResult:
        request = InferenceRequest(prompt=self.endpoint.prompt, payload=payload)
        state = RetryState(delay=self.policy.base_delay)
        response: Optional[httpx.Response] = None
        rate_limited = False
        calls = 0

        while state.attempt < self.policy.max_attempts:
            calls += 1
            try:
                response = await self._send(request)

                if response.status_code == 429:
                    response = None
                    rate_limited = True
                    state.attempt += 1
                    if state.attempt >= self.policy.max_attempts:
                        break
                    logger.warning(
                        "Rate limited (attempt %d/%d), retrying in %.1fs",
                        state.attempt, self.policy.max_attempts, state.delay,
                    )
                    await self._backoff(state)
                    continue

                if not response.is_success:
                    raise NonSuccessStatus(response.status_code, response.reason_phrase)
                break
            except (TransportFailure, NonSuccessStatus) as e:
                response = None
                rate_limited = False
                state.attempt += 1
                if state.attempt >= self.policy.max_attempts:
                    if isinstance(e, NonSuccessStatus):
                        return self._failed(e, calls)
                    return self._failed(
                        TransportFailureExhausted(f"Request failed after {calls} attempts: {e}", last_error=e),
                        calls,
                    )
                logger.warning(
                    "%s (attempt %d/%d), retrying in %.1fs",
                    e, state.attempt, self.policy.max_attempts, state.delay,
                )
                await self._backoff(state)

        if response is None:
            if rate_limited:
                return self._failed(
                    RateLimitExhausted(
                        f"Still rate limited after {calls} attempts", last_error=RateLimited()
                    ),
                    calls,
                )
            return self._failed(NoResponseObtained("Failed to fetch from API after multiple retries."), calls)

        try:
            description = extract_description(response.json())
        except ValueError:
            # body was not JSON
            return self._failed(NoDescriptionProduced("Reply body is not JSON"), calls)
        except NoDescriptionProduced as e:
            return self._failed(e, calls)

        logger.info("Alt text generated after %d call(s)", calls)
        return InferenceResult(description=description, attempts=calls)
