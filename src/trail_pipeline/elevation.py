"""
DEM elevation lookup for trail vertices.

Elevations come from a batched HTTP service (Open-Meteo by default). The
service rate-limits aggressively, so batches are sent strictly one after
another with a fixed pause in between, and each batch is retried with
exponential backoff. A batch that never succeeds degrades to unknown
elevations instead of aborting the build.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Protocol, Sequence

import httpx

from .config import PipelineSettings
from .models import Point

logger = logging.getLogger(__name__)

METERS_TO_FEET = 3.28084
DEFAULT_ELEVATION_URL = "https://api.open-meteo.com/v1/elevation"

Sleep = Callable[[float], Awaitable[None]]


# =============================================================================
# Exceptions
# =============================================================================

class ElevationServiceError(Exception):
    """Elevation request failed; the batch may be retried."""


class ElevationRateLimitError(ElevationServiceError):
    """Service answered 429 Too Many Requests."""


class ElevationResponseError(ElevationServiceError):
    """Response did not hold one elevation per requested point."""


# =============================================================================
# Clients
# =============================================================================

class ElevationClient(Protocol):
    """Looks up elevations in meters, one per point, in request order."""

    async def fetch(self, points: Sequence[Point]) -> list[float | None]: ...


class OpenMeteoElevationClient:
    """httpx client for the Open-Meteo elevation API."""

    def __init__(
        self,
        url: str = DEFAULT_ELEVATION_URL,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch(self, points: Sequence[Point]) -> list[float | None]:
        params = {
            "latitude": ",".join(str(p.lat) for p in points),
            "longitude": ",".join(str(p.lon) for p in points),
        }
        try:
            response = await self._client.get(self.url, params=params)
        except httpx.HTTPError as exc:
            raise ElevationServiceError(f"Request failed: {exc!r}") from exc

        if response.status_code == 429:
            raise ElevationRateLimitError("Rate limited (429)")
        if response.status_code != 200:
            raise ElevationServiceError(f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ElevationResponseError("Response is not JSON") from exc

        values = data.get("elevation") if isinstance(data, dict) else None
        if not isinstance(values, list):
            raise ElevationResponseError("Response has no elevation array")
        try:
            return [None if v is None else float(v) for v in values]
        except (TypeError, ValueError) as exc:
            raise ElevationResponseError(f"Non-numeric elevation in response: {exc}") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


# =============================================================================
# Retry state machine
# =============================================================================

class BatchState(str, Enum):
    PENDING = "pending"
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class BatchRetry:
    """
    Bounded retry with exponential backoff for a single batch.

    PENDING -> ATTEMPTING -> SUCCEEDED
                          -> WAITING -> ATTEMPTING ...
                          -> EXHAUSTED (after max_attempts failures)
    """

    def __init__(self, max_attempts: int = 5, initial_delay_ms: int = 2000, max_delay_ms: int = 30000):
        self.max_attempts = max_attempts
        self.max_delay_ms = max_delay_ms
        self.next_delay_ms = initial_delay_ms
        self.attempts = 0
        self.state = BatchState.PENDING
        self.last_error: Exception | None = None

    @property
    def done(self) -> bool:
        return self.state in (BatchState.SUCCEEDED, BatchState.EXHAUSTED)

    def start_attempt(self) -> None:
        if self.state not in (BatchState.PENDING, BatchState.WAITING):
            raise RuntimeError(f"Cannot start an attempt from state {self.state.value}")
        self.state = BatchState.ATTEMPTING
        self.attempts += 1

    def succeed(self) -> None:
        self._require_attempting()
        self.state = BatchState.SUCCEEDED

    def fail(self, error: Exception) -> int | None:
        """Record a failed attempt. Returns the delay in ms before the next
        attempt, or None once attempts are exhausted."""
        self._require_attempting()
        self.last_error = error
        if self.attempts >= self.max_attempts:
            self.state = BatchState.EXHAUSTED
            return None

        delay = self.next_delay_ms
        self.next_delay_ms = min(delay * 2, self.max_delay_ms)
        self.state = BatchState.WAITING
        return delay

    def _require_attempting(self) -> None:
        if self.state is not BatchState.ATTEMPTING:
            raise RuntimeError(f"No attempt in progress (state {self.state.value})")


# =============================================================================
# Enricher
# =============================================================================

def meters_to_feet(value: float | None) -> int | None:
    """Convert meters to whole feet; unknown stays unknown."""
    if value is None:
        return None
    return round(value * METERS_TO_FEET)


class ElevationEnricher:
    """Fetches elevations for a sequence of points, batch by batch."""

    def __init__(
        self,
        client: ElevationClient,
        batch_size: int = 100,
        max_attempts: int = 5,
        initial_backoff_ms: int = 2000,
        max_backoff_ms: int = 30000,
        inter_batch_delay_ms: int = 1500,
        sleep: Sleep = asyncio.sleep,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.client = client
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.initial_backoff_ms = initial_backoff_ms
        self.max_backoff_ms = max_backoff_ms
        self.inter_batch_delay_ms = inter_batch_delay_ms
        self._sleep = sleep

    @classmethod
    def from_settings(cls, client: ElevationClient, settings: PipelineSettings, sleep: Sleep = asyncio.sleep):
        return cls(
            client,
            batch_size=settings.batch_size,
            max_attempts=settings.max_retries,
            initial_backoff_ms=settings.initial_backoff_ms,
            max_backoff_ms=settings.max_backoff_ms,
            inter_batch_delay_ms=settings.inter_batch_delay_ms,
            sleep=sleep,
        )

    def batches(self, points: Sequence[Point]) -> list[list[Point]]:
        return [list(points[i:i + self.batch_size]) for i in range(0, len(points), self.batch_size)]

    async def fetch_batch(self, batch: Sequence[Point], label: str = "") -> list[float | None]:
        """Fetch one batch, retrying until success or exhaustion."""
        retry = BatchRetry(self.max_attempts, self.initial_backoff_ms, self.max_backoff_ms)

        while True:
            retry.start_attempt()
            try:
                values = await self.client.fetch(batch)
                if len(values) != len(batch):
                    raise ElevationResponseError(
                        f"Expected {len(batch)} elevations, got {len(values)}"
                    )
            except ElevationServiceError as exc:
                delay_ms = retry.fail(exc)
                if delay_ms is None:
                    logger.warning(
                        f"Batch {label} failed after {retry.attempts} attempts: {exc}; "
                        f"{len(batch)} elevations unknown"
                    )
                    return [None] * len(batch)
                logger.info(
                    f"Batch {label} retry in {delay_ms / 1000:g}s "
                    f"({retry.attempts}/{self.max_attempts}): {exc}"
                )
                await self._sleep(delay_ms / 1000)
                continue

            retry.succeed()
            logger.debug(f"Batch {label}: {len(batch)} elevations fetched")
            return values

    async def fetch_meters(self, points: Sequence[Point]) -> list[float | None]:
        """Elevations in meters for every point, None where unknown."""
        batches = self.batches(points)
        elevations: list[float | None] = []

        for i, batch in enumerate(batches):
            elevations.extend(await self.fetch_batch(batch, label=f"{i + 1}/{len(batches)}"))
            # Stay under the service rate limit
            if i < len(batches) - 1:
                await self._sleep(self.inter_batch_delay_ms / 1000)

        return elevations

    async def enrich(self, points: Sequence[Point]) -> list[int | None]:
        """Elevations in whole feet for every point, None where unknown."""
        elevations = [meters_to_feet(m) for m in await self.fetch_meters(points)]
        unknown = sum(1 for e in elevations if e is None)
        if unknown:
            logger.warning(f"{unknown} of {len(elevations)} points have unknown elevation")
        return elevations
