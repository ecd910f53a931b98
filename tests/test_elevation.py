"""Tests for elevation lookup, retry/backoff and batch degradation."""

import httpx
import pytest

from trail_pipeline.elevation import (
    BatchRetry,
    BatchState,
    ElevationEnricher,
    ElevationRateLimitError,
    ElevationResponseError,
    ElevationServiceError,
    OpenMeteoElevationClient,
    meters_to_feet,
)
from trail_pipeline.config import PipelineSettings
from trail_pipeline.models import Point


def line(n: int) -> list[Point]:
    return [Point(lon=-84.0 + i * 0.001, lat=34.0 + i * 0.001) for i in range(n)]


class FakeClient:
    """Returns ``index * 10`` meters per point; fails batches listed in ``failures``.

    ``failures`` maps a batch's first longitude to the number of times it
    should fail before succeeding (a large number means always).
    """

    def __init__(self, failures=None, error=ElevationServiceError):
        self.failures = dict(failures or {})
        self.error = error
        self.calls: list[int] = []

    async def fetch(self, points):
        self.calls.append(len(points))
        key = points[0].lon
        if self.failures.get(key, 0) > 0:
            self.failures[key] -= 1
            raise self.error("boom")
        return [round((p.lon + 84.0) * 1000) * 10.0 for p in points]


class TestMetersToFeet:
    def test_converts_and_rounds(self):
        assert meters_to_feet(100.0) == 328
        assert meters_to_feet(200.0) == 656
        assert meters_to_feet(0.0) == 0

    def test_unknown_propagates(self):
        assert meters_to_feet(None) is None


class TestBatchRetry:
    def test_backoff_doubles_until_exhausted(self):
        retry = BatchRetry(max_attempts=5, initial_delay_ms=2000, max_delay_ms=30000)
        delays = []
        while True:
            retry.start_attempt()
            delay = retry.fail(ElevationServiceError("x"))
            if delay is None:
                break
            delays.append(delay)
        assert delays == [2000, 4000, 8000, 16000]
        assert retry.attempts == 5
        assert retry.state is BatchState.EXHAUSTED
        assert retry.done

    def test_backoff_is_capped(self):
        retry = BatchRetry(max_attempts=4, initial_delay_ms=20000, max_delay_ms=30000)
        delays = []
        for _ in range(3):
            retry.start_attempt()
            delays.append(retry.fail(ElevationRateLimitError("429")))
        assert delays == [20000, 30000, 30000]
        assert retry.state is BatchState.WAITING

    def test_success(self):
        retry = BatchRetry()
        retry.start_attempt()
        retry.succeed()
        assert retry.state is BatchState.SUCCEEDED
        assert retry.done

    def test_invalid_transitions(self):
        retry = BatchRetry()
        with pytest.raises(RuntimeError):
            retry.succeed()
        retry.start_attempt()
        with pytest.raises(RuntimeError):
            retry.start_attempt()


@pytest.mark.asyncio
class TestElevationEnricher:
    async def test_batches_with_inter_batch_delay(self, fake_sleep, sleeps):
        client = FakeClient()
        enricher = ElevationEnricher(client, batch_size=100, sleep=fake_sleep)
        meters = await enricher.fetch_meters(line(250))
        assert client.calls == [100, 100, 50]
        assert sleeps == [1.5, 1.5]
        assert meters[0] == 0.0
        assert meters[249] == 2490.0

    async def test_exhausted_batch_is_unknown_and_later_batches_run(self, fake_sleep, sleeps):
        points = line(250)
        client = FakeClient(failures={points[0].lon: 99})
        enricher = ElevationEnricher(client, batch_size=100, sleep=fake_sleep)
        meters = await enricher.fetch_meters(points)
        assert meters[:100] == [None] * 100
        assert all(m is not None for m in meters[100:])
        assert client.calls == [100] * 5 + [100, 50]
        assert sleeps == [2.0, 4.0, 8.0, 16.0, 1.5, 1.5]

    async def test_rate_limit_then_success(self, fake_sleep, sleeps):
        points = line(10)
        client = FakeClient(failures={points[0].lon: 1}, error=ElevationRateLimitError)
        enricher = ElevationEnricher(client, sleep=fake_sleep)
        meters = await enricher.fetch_meters(points)
        assert None not in meters
        assert sleeps == [2.0]

    async def test_wrong_count_is_retried(self, fake_sleep, sleeps):
        class ShortOnce:
            calls = 0

            async def fetch(self, points):
                self.calls += 1
                if self.calls == 1:
                    return [1.0]
                return [1.0] * len(points)

        enricher = ElevationEnricher(ShortOnce(), sleep=fake_sleep)
        assert await enricher.fetch_meters(line(3)) == [1.0, 1.0, 1.0]
        assert sleeps == [2.0]

    async def test_enrich_returns_feet(self, fake_sleep):
        enricher = ElevationEnricher(FakeClient(), sleep=fake_sleep)
        feet = await enricher.enrich(line(3))
        assert feet == [0, 33, 66]

    async def test_no_points(self, fake_sleep, sleeps):
        client = FakeClient()
        enricher = ElevationEnricher(client, sleep=fake_sleep)
        assert await enricher.enrich([]) == []
        assert client.calls == []
        assert sleeps == []

    async def test_from_settings(self, fake_sleep, sleeps):
        settings = PipelineSettings(batch_size=2, max_retries=2, initial_backoff_ms=500, inter_batch_delay_ms=100)
        points = line(4)
        client = FakeClient(failures={points[0].lon: 99})
        enricher = ElevationEnricher.from_settings(client, settings, sleep=fake_sleep)
        meters = await enricher.fetch_meters(points)
        assert meters[:2] == [None, None]
        assert sleeps == [0.5, 0.1]


def _mock_client(handler) -> OpenMeteoElevationClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenMeteoElevationClient("https://elevation.test/v1/elevation", client=http)


@pytest.mark.asyncio
class TestOpenMeteoElevationClient:
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["lat"] = request.url.params["latitude"]
            seen["lon"] = request.url.params["longitude"]
            return httpx.Response(200, json={"elevation": [1.5, 2.5]})

        client = _mock_client(handler)
        values = await client.fetch([Point(lon=-84.0, lat=34.0), Point(lon=-83.5, lat=34.5)])
        assert values == [1.5, 2.5]
        assert seen == {"lat": "34.0,34.5", "lon": "-84.0,-83.5"}

    async def test_rate_limited(self):
        client = _mock_client(lambda request: httpx.Response(429))
        with pytest.raises(ElevationRateLimitError):
            await client.fetch(line(1))

    async def test_server_error(self):
        client = _mock_client(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(ElevationServiceError, match="HTTP 503"):
            await client.fetch(line(1))

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _mock_client(handler)
        with pytest.raises(ElevationServiceError):
            await client.fetch(line(1))

    async def test_malformed_body(self):
        client = _mock_client(lambda request: httpx.Response(200, json={"error": True}))
        with pytest.raises(ElevationResponseError):
            await client.fetch(line(1))

    async def test_retried_through_enricher(self, fake_sleep, sleeps):
        responses = iter([httpx.Response(429), httpx.Response(200, json={"elevation": [100.0]})])
        client = _mock_client(lambda request: next(responses))
        enricher = ElevationEnricher(client, sleep=fake_sleep)
        assert await enricher.enrich(line(1)) == [328]
        assert sleeps == [2.0]

    @pytest.mark.parametrize("bad", ["n/a", {"m": 100}, [100.0]])
    async def test_non_numeric_elevation_is_response_error(self, bad):
        client = _mock_client(lambda request: httpx.Response(200, json={"elevation": [bad]}))
        with pytest.raises(ElevationResponseError):
            await client.fetch(line(1))

    async def test_non_numeric_elevation_retried_through_enricher(self, fake_sleep, sleeps):
        responses = iter([
            httpx.Response(200, json={"elevation": ["n/a"]}),
            httpx.Response(200, json={"elevation": [100.0]}),
        ])
        client = _mock_client(lambda request: next(responses))
        enricher = ElevationEnricher(client, sleep=fake_sleep)
        assert await enricher.enrich(line(1)) == [328]
        assert sleeps == [2.0]

    async def test_non_numeric_elevation_degrades_to_unknown(self, fake_sleep):
        client = _mock_client(lambda request: httpx.Response(200, json={"elevation": [{"m": 1}, "x"]}))
        enricher = ElevationEnricher(client, max_attempts=2, sleep=fake_sleep)
        assert await enricher.enrich(line(2)) == [None, None]
