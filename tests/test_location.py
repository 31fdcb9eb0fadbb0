import asyncio
import unittest
from unittest.mock import patch

import httpx

from services import location
from services.location import (
    ClientLocationProvider,
    LocationError,
    Position,
    calculate_distance,
    get_address_from_coords,
    get_current_location,
    get_quick_location,
    locate_for_submission,
)

DEFAULT = {"lat": location.DEFAULT_LAT, "lng": location.DEFAULT_LNG, "accuracy": 0, "isDefault": True}


class SlowProvider:
    def __init__(self, delay):
        self.delay = delay

    async def __call__(self, high_accuracy=True):
        await asyncio.sleep(self.delay)
        return Position(lat=1.0, lng=2.0, accuracy=5.0)


class RecordingProvider:
    def __init__(self):
        self.requests = []

    async def __call__(self, high_accuracy=True):
        self.requests.append(high_accuracy)
        return Position(lat=12.97, lng=77.59, accuracy=8.0)


class TestPreciseLocation(unittest.IsolatedAsyncioTestCase):
    async def test_returns_reading_with_high_accuracy(self) -> None:
        provider = RecordingProvider()

        result = await get_current_location(provider)

        self.assertEqual(result, {"lat": 12.97, "lng": 77.59, "accuracy": 8.0, "isDefault": False})
        self.assertEqual(provider.requests, [True])

    async def test_permission_denied_is_raised(self) -> None:
        with self.assertRaises(LocationError) as ctx:
            await get_current_location(ClientLocationProvider(error="permission_denied"))
        self.assertEqual(ctx.exception.code, location.PERMISSION_DENIED)
        self.assertIn("permission denied", str(ctx.exception))

    async def test_unavailable_is_raised(self) -> None:
        with self.assertRaises(LocationError) as ctx:
            await get_current_location(ClientLocationProvider())
        self.assertEqual(ctx.exception.code, location.POSITION_UNAVAILABLE)

    async def test_impossible_coordinates_are_unavailable(self) -> None:
        for lat, lng in ((95.0, 10.0), (10.0, -181.0), (float("nan"), 10.0), (float("inf"), 0.0)):
            with self.assertRaises(LocationError) as ctx:
                await get_current_location(ClientLocationProvider(latitude=lat, longitude=lng))
            self.assertEqual(ctx.exception.code, location.POSITION_UNAVAILABLE)

    async def test_missing_provider_is_unsupported(self) -> None:
        with self.assertRaises(LocationError) as ctx:
            await get_current_location(None)
        self.assertEqual(ctx.exception.code, location.UNSUPPORTED)

    async def test_provider_timeout_falls_back(self) -> None:
        result = await get_current_location(ClientLocationProvider(error="timeout"))
        self.assertEqual(result, DEFAULT)

    async def test_slow_provider_falls_back(self) -> None:
        result = await get_current_location(SlowProvider(1.0), timeout=0.05)
        self.assertEqual(result, DEFAULT)


class TestQuickLocation(unittest.IsolatedAsyncioTestCase):
    async def test_returns_reading_with_low_accuracy(self) -> None:
        provider = RecordingProvider()

        result = await get_quick_location(provider)

        self.assertFalse(result["isDefault"])
        self.assertEqual(provider.requests, [False])

    async def test_never_raises(self) -> None:
        for provider in (
            None,
            ClientLocationProvider(error="permission_denied"),
            ClientLocationProvider(error="unavailable"),
            ClientLocationProvider(error="something odd"),
            ClientLocationProvider(),
        ):
            self.assertEqual(await get_quick_location(provider), DEFAULT)

    async def test_slow_provider_falls_back(self) -> None:
        self.assertEqual(await get_quick_location(SlowProvider(1.0), timeout=0.05), DEFAULT)

    async def test_impossible_reading_falls_back(self) -> None:
        self.assertEqual(await get_quick_location(ClientLocationProvider(latitude=95.0, longitude=10.0)), DEFAULT)


class TestSubmissionLocation(unittest.IsolatedAsyncioTestCase):
    async def test_denied_location_is_omitted(self) -> None:
        self.assertIsNone(await locate_for_submission(ClientLocationProvider(error="permission_denied")))

    async def test_missing_provider_is_omitted(self) -> None:
        self.assertIsNone(await locate_for_submission(None))

    async def test_slow_location_uses_default(self) -> None:
        with patch.object(location, "SUBMISSION_TIMEOUT_SECONDS", 0.05):
            result = await locate_for_submission(SlowProvider(1.0))
        self.assertEqual(result, DEFAULT)

    async def test_impossible_reading_is_omitted(self) -> None:
        provider = ClientLocationProvider(latitude=95.0, longitude=77.21, accuracy=10.0)
        self.assertIsNone(await locate_for_submission(provider))

    async def test_client_reading_is_used(self) -> None:
        provider = ClientLocationProvider(latitude=51.5, longitude=-0.12, accuracy=20.0)
        result = await locate_for_submission(provider)
        self.assertEqual(result, {"lat": 51.5, "lng": -0.12, "accuracy": 20.0, "isDefault": False})


def _mock_client(handler):
    real_client = httpx.AsyncClient

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    return patch.object(location.httpx, "AsyncClient", side_effect=factory)


class TestReverseGeocoding(unittest.IsolatedAsyncioTestCase):
    async def test_address_lookup(self) -> None:
        def handler(request):
            self.assertEqual(request.url.params["format"], "json")
            return httpx.Response(200, json={
                "display_name": "Connaught Place, New Delhi, India",
                "address": {"town": "New Delhi", "country": "India"},
            })

        with _mock_client(handler):
            result = await get_address_from_coords(28.6315, 77.2167)

        self.assertEqual(result, {
            "address": "Connaught Place, New Delhi, India",
            "city": "New Delhi",
            "country": "India",
        })

    async def test_lookup_failure_returns_coordinates(self) -> None:
        with _mock_client(lambda request: httpx.Response(503)):
            result = await get_address_from_coords(28.6315, 77.2167)

        self.assertEqual(result, {"address": "28.631500, 77.216700", "city": "", "country": ""})


class TestDistance(unittest.TestCase):
    def test_same_point(self) -> None:
        self.assertEqual(calculate_distance(28.7041, 77.1025, 28.7041, 77.1025), 0.0)

    def test_delhi_to_mumbai(self) -> None:
        self.assertAlmostEqual(calculate_distance(28.7041, 77.1025, 19.0760, 72.8777), 1150, delta=25)


if __name__ == "__main__":
    unittest.main()
