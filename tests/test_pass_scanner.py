"""
Tests for the single-observer pass scanner

Run with:
    python -m pytest tests/test_pass_scanner.py -v
"""

import unittest
from datetime import timedelta

from fakes import ISS_LINE1, T0, FixedAlmanac, ScriptedEphemeris, make_elements
from tracking_service.almanac import DAYLIGHT, NIGHT, day_night_phase
from tracking_service.ephemeris import Sgp4Ephemeris
from tracking_service.errors import MalformedElements, MissingElements
from tracking_service.pass_scanner import PassScanner, StepSample, scan_first_window, step_times


def window_elevation(start, end, peak_at, peak=25.0, base=10.0):
    """Above the horizon on [start, end] with a single peak, below elsewhere."""
    def elevation(t, name):
        if start <= t <= end:
            return peak if t == peak_at else base
        return -15.0
    return elevation


class TestPassScanner(unittest.TestCase):
    """Test next-pass search over a scripted elevation profile."""

    def setUp(self):
        self.almanac = FixedAlmanac(altitude=30.0)

    def scan(self, elevation, **kwargs):
        scanner = PassScanner(ScriptedEphemeris(elevation=elevation), self.almanac)
        kwargs.setdefault("now", T0)
        return scanner.compute_next_pass(make_elements(), 22.0, 78.0, **kwargs)

    def test_finds_first_window(self):
        window = self.scan(window_elevation(600, 900, peak_at=750))

        self.assertEqual(window.start_time, T0 + timedelta(seconds=600))
        self.assertEqual(window.end_time, T0 + timedelta(seconds=900))
        self.assertEqual(window.duration_seconds, 300.0)
        self.assertEqual(window.max_elevation_deg, 25.0)
        self.assertEqual(window.day_night, DAYLIGHT)
        self.assertFalse(window.truncated)
        self.assertIsNone(window.best_observer)

    def test_duration_matches_endpoints(self):
        window = self.scan(window_elevation(1230, 1710, peak_at=1500))

        self.assertGreaterEqual(window.end_time, window.start_time)
        self.assertEqual(
            window.duration_seconds, (window.end_time - window.start_time).total_seconds()
        )

    def test_permanently_below_horizon(self):
        """No pass within a 1-hour horizon at 30 s steps returns None"""
        window = self.scan(lambda t, name: -5.0, lookahead_hours=1.0, step_seconds=30)
        self.assertIsNone(window)
        self.assertEqual(self.almanac.calls, [])

    def test_later_windows_ignored(self):
        def two_passes(t, name):
            if 300 <= t <= 420:
                return 5.0
            if 3000 <= t <= 3600:
                return 60.0
            return -10.0

        window = self.scan(two_passes)
        self.assertEqual(window.start_time, T0 + timedelta(seconds=300))
        self.assertEqual(window.max_elevation_deg, 5.0)

    def test_window_open_at_horizon_is_truncated(self):
        """A window still open at the last step reports its last seen end"""
        window = self.scan(lambda t, name: 8.0 if t >= 3450 else -3.0, lookahead_hours=1.0)

        self.assertEqual(window.start_time, T0 + timedelta(seconds=3450))
        self.assertEqual(window.end_time, T0 + timedelta(hours=1))
        self.assertTrue(window.truncated)

    def test_pass_in_progress_starts_now(self):
        window = self.scan(lambda t, name: 20.0 if t <= 120 else -1.0)
        self.assertEqual(window.start_time, T0)
        self.assertEqual(window.end_time, T0 + timedelta(seconds=120))

    def test_failed_step_counts_as_no_signal(self):
        """A transient failure closes the window instead of aborting the scan"""
        def flaky(t, name):
            if t == 750:
                raise RuntimeError("transient")
            return 12.0 if 600 <= t <= 900 else -12.0

        window = self.scan(flaky)
        self.assertEqual(window.start_time, T0 + timedelta(seconds=600))
        self.assertEqual(window.end_time, T0 + timedelta(seconds=720))

    def test_day_night_evaluated_once_at_start(self):
        self.almanac = FixedAlmanac(altitude=-10.0)
        window = self.scan(window_elevation(600, 900, peak_at=750))

        self.assertEqual(window.day_night, NIGHT)
        self.assertEqual(self.almanac.calls, [(T0 + timedelta(seconds=600), 22.0, 78.0)])

    def test_scan_stops_after_window_closes(self):
        ephemeris = ScriptedEphemeris(elevation=window_elevation(60, 90, peak_at=60))
        PassScanner(ephemeris, self.almanac).compute_next_pass(make_elements(), 0.0, 0.0, now=T0)

        # steps 0..120 evaluated, nothing after the closing step
        self.assertEqual(ephemeris.observe_calls, 5)

    def test_missing_elements_raise(self):
        scanner = PassScanner(ScriptedEphemeris(), self.almanac)
        with self.assertRaises(MissingElements):
            scanner.compute_next_pass(make_elements(line1=""), 0.0, 0.0, now=T0)

    def test_malformed_elements_raise(self):
        """Malformed elements are not a per-step condition"""
        scanner = PassScanner(Sgp4Ephemeris(), self.almanac)
        with self.assertRaises(MalformedElements):
            scanner.compute_next_pass(
                make_elements(line1=ISS_LINE1[:68] + "0"), 0.0, 0.0, now=T0
            )


class TestScanFold(unittest.TestCase):

    def test_step_times_inclusive(self):
        times = list(step_times(T0, 3600.0, 30))
        self.assertEqual(len(times), 121)
        self.assertEqual(times[-1], T0 + timedelta(hours=1))

    def test_step_times_rejects_non_positive_step(self):
        with self.assertRaises(ValueError):
            list(step_times(T0, 60.0, 0))

    def test_no_signal_samples_never_open_a_window(self):
        samples = [StepSample(T0 + timedelta(seconds=i), None) for i in range(5)]
        self.assertIsNone(scan_first_window(samples))

    def test_zero_elevation_is_not_above_horizon(self):
        samples = [StepSample(T0, 0.0), StepSample(T0 + timedelta(seconds=30), 0.0)]
        self.assertIsNone(scan_first_window(samples))


class TestDayNightPhase(unittest.TestCase):

    def test_civil_twilight_threshold(self):
        self.assertEqual(day_night_phase(FixedAlmanac(-5.9), T0, 0.0, 0.0), DAYLIGHT)
        self.assertEqual(day_night_phase(FixedAlmanac(-6.0), T0, 0.0, 0.0), NIGHT)
        self.assertEqual(day_night_phase(FixedAlmanac(-30.0), T0, 0.0, 0.0), NIGHT)


if __name__ == "__main__":
    unittest.main()
