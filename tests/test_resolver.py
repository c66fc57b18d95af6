"""
Unit tests for the endpoint resolver
"""

import unittest
from datetime import datetime, timezone
from unittest.mock import Mock
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from origin_sync.control_api import ControlAPI
from origin_sync.errors import ControlAPIError, ResolutionTimeout
from origin_sync.resolver import resolve_endpoint


class TestResolveEndpoint(unittest.TestCase):
    """Bounded polling of the service address"""

    def setUp(self):
        self.api = Mock(spec=ControlAPI)
        self.sleep = Mock()

    def test_returns_address_on_third_attempt(self):
        """Empty, empty, address -> address after exactly 3 queries"""
        self.api.get_service_address.side_effect = [None, "", "34.1.2.3"]

        endpoint = resolve_endpoint(self.api, "frontend", poll_interval=0, max_attempts=3,
                                    sleep=self.sleep)

        self.assertEqual(endpoint.address, "34.1.2.3")
        self.assertEqual(endpoint.attempts, 3)
        self.assertEqual(self.api.get_service_address.call_count, 3)
        self.api.get_service_address.assert_called_with("frontend")

    def test_no_queries_after_address_found(self):
        """Resolution stops at the first non-empty address"""
        self.api.get_service_address.side_effect = [None, "34.1.2.3", "9.9.9.9", "8.8.8.8"]

        endpoint = resolve_endpoint(self.api, "frontend", poll_interval=0, max_attempts=10,
                                    sleep=self.sleep)

        self.assertEqual(endpoint.address, "34.1.2.3")
        self.assertEqual(self.api.get_service_address.call_count, 2)

    def test_timeout_after_exactly_max_attempts(self):
        """Always empty with max_attempts=2 -> ResolutionTimeout after 2 queries"""
        self.api.get_service_address.return_value = None

        with self.assertRaises(ResolutionTimeout) as ctx:
            resolve_endpoint(self.api, "frontend", poll_interval=0, max_attempts=2,
                             sleep=self.sleep)

        self.assertEqual(self.api.get_service_address.call_count, 2)
        self.assertEqual(ctx.exception.attempts, 2)
        self.assertEqual(ctx.exception.exit_code, 3)

    def test_sleeps_between_attempts_only(self):
        """No sleep after the final attempt"""
        self.api.get_service_address.return_value = None

        with self.assertRaises(ResolutionTimeout):
            resolve_endpoint(self.api, "frontend", poll_interval=10, max_attempts=3,
                             sleep=self.sleep)

        self.assertEqual(self.sleep.call_count, 2)
        self.sleep.assert_called_with(10)

    def test_backoff_grows_interval_up_to_cap(self):
        """Interval is multiplied after each attempt and capped"""
        self.api.get_service_address.return_value = None

        with self.assertRaises(ResolutionTimeout):
            resolve_endpoint(self.api, "frontend", poll_interval=1, max_attempts=5,
                             backoff=2.0, max_interval=5, sleep=self.sleep)

        delays = [c.args[0] for c in self.sleep.call_args_list]
        self.assertEqual(delays, [1, 2, 4, 5])

    def test_api_errors_count_as_attempts(self):
        """A failed query is retried within the same budget"""
        self.api.get_service_address.side_effect = [
            ControlAPIError("Reading service failed: 503 Service Unavailable", status=503),
            "a1b2.elb.amazonaws.com",
        ]

        endpoint = resolve_endpoint(self.api, "frontend", poll_interval=0, max_attempts=2,
                                    sleep=self.sleep)

        self.assertEqual(endpoint.address, "a1b2.elb.amazonaws.com")

    def test_timeout_carries_last_error(self):
        """The last API error is attached to the timeout"""
        error = ControlAPIError("forbidden", status=403)
        self.api.get_service_address.side_effect = error

        with self.assertRaises(ResolutionTimeout) as ctx:
            resolve_endpoint(self.api, "frontend", poll_interval=0, max_attempts=2,
                             sleep=self.sleep)

        self.assertIs(ctx.exception.last_error, error)
        self.assertIn("forbidden", str(ctx.exception))

    def test_resolved_at_uses_clock(self):
        """Timestamp comes from the injected clock"""
        stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.api.get_service_address.return_value = "10.0.0.5"

        endpoint = resolve_endpoint(self.api, "frontend", sleep=self.sleep, clock=lambda: stamp)

        self.assertEqual(endpoint.resolved_at, stamp)
        self.sleep.assert_not_called()

    def test_rejects_invalid_budget(self):
        """Invalid polling parameters fail before any query"""
        for kwargs in ({"max_attempts": 0}, {"poll_interval": -1}, {"backoff": 0.5},
                       {"max_interval": -1}):
            with self.subTest(**kwargs):
                with self.assertRaises(ValueError):
                    resolve_endpoint(self.api, "frontend", sleep=self.sleep, **kwargs)
        self.api.get_service_address.assert_not_called()


if __name__ == '__main__':
    unittest.main()
