"""
Tests for the multi-observer best-pass selector

Run with:
    python -m pytest tests/test_best_observer.py -v
"""

import unittest
from datetime import timedelta

from fakes import T0, ScriptedEphemeris, make_elements, make_registry, names_for
from tracking_service.best_observer import NO_SIGNAL, BestObserverPassSelector
from tracking_service.errors import MissingElements


class TestBestObserverPassSelector(unittest.TestCase):
    """Test window search over the per-step maximum elevation."""

    def setUp(self):
        self.registry = make_registry()

    def selector(self, elevation):
        ephemeris = ScriptedEphemeris(elevation=elevation, names=names_for(self.registry))
        return BestObserverPassSelector(ephemeris, self.registry)

    def test_single_city_pass(self):
        """City B peaks at 12 degrees five minutes out; everyone else is down"""
        def elevation(t, name):
            if name == "City B":
                return 12.0 - abs(t - 300) / 10.0
            if name == "Region Center":
                return -5.0
            return -20.0

        window = self.selector(elevation).get_best_next_pass(make_elements(), now=T0)

        self.assertEqual(window.best_observer.name, "City B")
        self.assertEqual(window.max_elevation_deg, 12.0)
        self.assertEqual(window.start_time, T0 + timedelta(seconds=210))
        self.assertEqual(window.end_time, T0 + timedelta(seconds=390))
        self.assertEqual(window.duration_seconds, 180.0)
        self.assertFalse(window.truncated)

    def test_window_follows_per_step_maximum(self):
        """Overlapping observer passes merge into one window"""
        def elevation(t, name):
            if name == "City A" and 300 <= t <= 600:
                return 20.0
            if name == "City C" and 540 <= t <= 900:
                return 35.0
            return -10.0

        window = self.selector(elevation).get_best_next_pass(make_elements(), now=T0)

        self.assertEqual(window.start_time, T0 + timedelta(seconds=300))
        self.assertEqual(window.end_time, T0 + timedelta(seconds=900))
        self.assertEqual(window.max_elevation_deg, 35.0)
        self.assertEqual(window.best_observer.name, "City C")

    def test_max_elevation_rounded(self):
        def elevation(t, name):
            return 17.456789 if name == "City A" and t == 600 else -1.0

        window = self.selector(elevation).get_best_next_pass(make_elements(), now=T0)
        self.assertEqual(window.max_elevation_deg, 17.46)

    def test_failing_observer_is_ignored(self):
        """One observer's failure does not abort the step"""
        def elevation(t, name):
            if name == "City A":
                raise RuntimeError("observer query failed")
            if name == "City B" and 600 <= t <= 690:
                return 9.0
            return -10.0

        window = self.selector(elevation).get_best_next_pass(make_elements(), now=T0)

        self.assertEqual(window.best_observer.name, "City B")
        self.assertEqual(window.start_time, T0 + timedelta(seconds=600))

    def test_all_observers_failing(self):
        def elevation(t, name):
            raise RuntimeError("no signal")

        window = self.selector(elevation).get_best_next_pass(make_elements(), now=T0)
        self.assertIsNone(window)

    def test_no_pass_within_lookahead(self):
        window = self.selector(lambda t, name: -1.0).get_best_next_pass(
            make_elements(), lookahead_minutes=10, now=T0
        )
        self.assertIsNone(window)

    def test_ties_go_to_earlier_observer(self):
        def elevation(t, name):
            if name in ("City A", "City C") and 300 <= t <= 420:
                return 10.0
            return -10.0

        window = self.selector(elevation).get_best_next_pass(make_elements(), now=T0)
        self.assertEqual(window.best_observer.name, "City A")

    def test_center_only_pass(self):
        """The region centre takes part in the search"""
        def elevation(t, name):
            if name == "Region Center" and 600 <= t <= 660:
                return 4.0
            return -20.0

        window = self.selector(elevation).get_best_next_pass(make_elements(), now=T0)

        self.assertEqual(window.best_observer.name, "Region Center")
        self.assertEqual(window.max_elevation_deg, 4.0)

    def test_best_sample_without_signal(self):
        def elevation(t, name):
            raise RuntimeError("no signal")

        self.assertIs(self.selector(elevation).best_sample(make_elements(), T0), NO_SIGNAL)

    def test_missing_elements_raise(self):
        with self.assertRaises(MissingElements):
            self.selector(lambda t, name: 10.0).get_best_next_pass(
                make_elements(line2=None), now=T0
            )


if __name__ == "__main__":
    unittest.main()
