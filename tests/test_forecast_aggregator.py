import datetime as dt
import unittest

from owm_relay.forecast_aggregator import (
    DEFAULT_ICON,
    ForecastPoint,
    aggregate,
    points_from_forecast,
    utc_offset_from_forecast,
)

DAY1 = int(dt.datetime(2024, 6, 1, tzinfo=dt.timezone.utc).timestamp())
HOUR = 3600


def _points(start, hours, temps, icons=None, pops=None):
    icons = icons or [f"i{h}" for h in hours]
    pops = pops or [None] * len(hours)
    return [
        ForecastPoint(timestamp=start + h * HOUR, temp=t, precipitation_probability=p, icon=i)
        for h, t, i, p in zip(hours, temps, icons, pops)
    ]


class TestAggregate(unittest.TestCase):
    def test_min_max_per_day(self):
        points = _points(DAY1, [0, 3, 6, 9, 12], [10, 12, 15, 14, 11]) + \
            _points(DAY1 + 24 * HOUR, [0, 3, 6, 9, 12], [5, 6, 7, 8, 9])
        days = aggregate(points, 0)
        self.assertEqual(len(days), 2)
        self.assertEqual((days[0].temp_min, days[0].temp_max), (10, 15))
        self.assertEqual((days[1].temp_min, days[1].temp_max), (5, 9))
        self.assertEqual(days[0].date, dt.date(2024, 6, 1))
        self.assertEqual(days[0].first_timestamp, DAY1)

    def test_idempotent(self):
        points = _points(DAY1, [0, 3, 6, 9, 12, 15], [1, 2, 3, 4, 5, 6])
        self.assertEqual(aggregate(points, 7200), aggregate(points, 7200))

    def test_icon_prefers_local_noon(self):
        points = _points(DAY1, [0, 3, 6, 12, 15], [1, 1, 1, 1, 1], icons=["a", "b", "c", "noon", "e"])
        self.assertEqual(aggregate(points)[0].representative_icon, "noon")

    def test_icon_falls_back_to_midpoint(self):
        points = _points(DAY1, [1, 4, 7, 10], [1, 1, 1, 1], icons=["a", "b", "mid", "d"])
        self.assertEqual(aggregate(points)[0].representative_icon, "mid")

    def test_missing_icon_uses_default(self):
        points = [ForecastPoint(timestamp=DAY1 + 12 * HOUR, temp=1.0)]
        self.assertEqual(aggregate(points)[0].representative_icon, DEFAULT_ICON)

    def test_offset_shifts_day_boundary_and_noon(self):
        # 21:00 UTC on day 1 is 00:00 local on day 2 at +3h
        points = _points(DAY1, [18, 21, 33], [1, 2, 3], icons=["a", "b", "c"])
        days = aggregate(points, 3 * HOUR)
        self.assertEqual([d.date for d in days], [dt.date(2024, 6, 1), dt.date(2024, 6, 2)])
        # 09:00 UTC + 3h = local noon
        self.assertEqual(days[1].representative_icon, "c")
        self.assertEqual(days[1].temp_min, 2)

    def test_negative_offset(self):
        points = _points(DAY1, [3], [1])
        self.assertEqual(aggregate(points, -5 * HOUR)[0].date, dt.date(2024, 5, 31))

    def test_precipitation_probability_max_with_default_zero(self):
        points = _points(DAY1, [0, 3, 6], [1, 1, 1], pops=[None, 0.4, 0.2])
        self.assertEqual(aggregate(points)[0].max_precipitation_probability, 0.4)
        dry = _points(DAY1, [0, 3], [1, 1])
        self.assertEqual(aggregate(dry)[0].max_precipitation_probability, 0)

    def test_at_most_five_days(self):
        points = []
        for day in range(7):
            points += _points(DAY1 + day * 24 * HOUR, [0, 12], [day, day])
        days = aggregate(points)
        self.assertEqual(len(days), 5)
        self.assertEqual(days[-1].date, dt.date(2024, 6, 5))

    def test_does_not_sort_input(self):
        points = _points(DAY1 + 24 * HOUR, [0], [1]) + _points(DAY1, [0], [2])
        days = aggregate(points)
        self.assertEqual([d.date for d in days], [dt.date(2024, 6, 2), dt.date(2024, 6, 1)])

    def test_empty_input(self):
        self.assertEqual(aggregate([]), [])


class TestForecastPayloadHelpers(unittest.TestCase):
    def test_points_and_offset_from_payload(self):
        payload = {
            "list": [
                {"dt": DAY1, "main": {"temp": 10.5}, "pop": 0.3, "weather": [{"icon": "10d"}]},
                {"dt": DAY1 + 3 * HOUR, "main": {"temp": 11.0}},
                {"main": {"temp": 99}},
            ],
            "city": {"name": "Oslo", "timezone": 7200},
        }
        points = points_from_forecast(payload)
        self.assertEqual(len(points), 2)
        self.assertEqual(points[0], ForecastPoint(DAY1, 10.5, 0.3, "10d"))
        self.assertIsNone(points[1].icon)
        self.assertEqual(utc_offset_from_forecast(payload), 7200)

    def test_offset_defaults_to_zero(self):
        self.assertEqual(utc_offset_from_forecast({}), 0)
        self.assertEqual(utc_offset_from_forecast({"city": {"timezone": "x"}}), 0)


if __name__ == "__main__":
    unittest.main()
