import unittest

from owm_relay.descriptors import CATEGORY_SPECS, Category, RequestDescriptor
from owm_relay.errors import ValidationError


class TestRequestDescriptor(unittest.TestCase):
    def test_build_applies_defaults_and_drops_unknown(self):
        d = RequestDescriptor.build(Category.ONE_CALL, lat=" 59.9 ", lon="10.7", bogus="x", lang="")
        self.assertEqual(dict(d.params), {"lat": "59.9", "lon": "10.7", "units": "metric", "exclude": "minutely"})

    def test_empty_optional_falls_back_to_default(self):
        d = RequestDescriptor.build(Category.CURRENT_WEATHER, city="Oslo", units="")
        self.assertEqual(d.params["units"], "metric")

    def test_optional_without_default_is_omitted(self):
        d = RequestDescriptor.build(Category.ONE_CALL_TIMEMACHINE, lat="1", lon="2", dt="1700000000")
        self.assertNotIn("units", d.params)

    def test_cache_key_is_order_independent(self):
        a = RequestDescriptor.build(Category.CURRENT_WEATHER, city="Oslo", lang="no", units="imperial")
        b = RequestDescriptor.build(Category.CURRENT_WEATHER, units="imperial", lang="no", city="Oslo")
        self.assertEqual(a.cache_key(), b.cache_key())

    def test_default_and_explicit_default_share_key(self):
        a = RequestDescriptor.build(Category.FORECAST, city="Oslo")
        b = RequestDescriptor.build(Category.FORECAST, city="Oslo", units="metric")
        self.assertEqual(a.cache_key(), b.cache_key())

    def test_cache_key_distinguishes_categories(self):
        a = RequestDescriptor.build(Category.CURRENT_WEATHER, city="Oslo")
        b = RequestDescriptor.build(Category.FORECAST, city="Oslo")
        self.assertNotEqual(a.cache_key(), b.cache_key())

    def test_every_category_rejects_each_missing_required_param(self):
        for category, spec in CATEGORY_SPECS.items():
            full = {name: "1" for name in spec.required}
            if category is Category.MAP_TILE:
                full["layer"] = "temp_new"
            for missing in spec.required:
                with self.subTest(category=category.value, missing=missing):
                    params = {k: v for k, v in full.items() if k != missing}
                    with self.assertRaises(ValidationError):
                        RequestDescriptor.build(category, **params).validate()
                    blank = {**params, missing: "   "}
                    with self.assertRaises(ValidationError):
                        RequestDescriptor.build(category, **blank).validate()

    def test_missing_lat_lon_message(self):
        with self.assertRaises(ValidationError) as ctx:
            RequestDescriptor.build(Category.AIR_POLLUTION, lat="1").validate()
        self.assertEqual(ctx.exception.message, "lat/lon required")

    def test_tile_layer_must_be_allowed(self):
        with self.assertRaises(ValidationError) as ctx:
            RequestDescriptor.build(Category.MAP_TILE, layer="snow_new", z="1", x="1", y="1").validate()
        self.assertEqual(ctx.exception.message, "invalid layer")

    def test_tile_coordinates_must_be_integers(self):
        with self.assertRaises(ValidationError):
            RequestDescriptor.build(Category.MAP_TILE, layer="temp_new", z="1", x="..", y="1").validate()

    def test_tile_coordinates_must_be_ascii_digits(self):
        for z, x in (("²", "1"), ("1", "٣"), ("３", "1")):
            with self.subTest(z=z, x=x):
                with self.assertRaises(ValidationError):
                    RequestDescriptor.build(Category.MAP_TILE, layer="temp_new", z=z, x=x, y="1").validate()

    def test_upstream_request_for_current_weather_renames_city(self):
        d = RequestDescriptor.build(Category.CURRENT_WEATHER, city="Oslo", lang="no")
        self.assertEqual(d.upstream_url("https://api", "https://tile"), "https://api/data/2.5/weather")
        self.assertEqual(d.upstream_params(), {"q": "Oslo", "units": "metric", "lang": "no"})

    def test_upstream_request_for_geocode_adds_limit(self):
        d = RequestDescriptor.build(Category.GEOCODE_FORWARD, q="Paris")
        self.assertEqual(d.upstream_params(), {"q": "Paris", "limit": "5"})
        self.assertNotIn("limit", d.cache_key())

    def test_upstream_request_for_tile(self):
        d = RequestDescriptor.build(Category.MAP_TILE, layer="temp_new", z="3", x="1", y="2")
        self.assertEqual(
            d.upstream_url("https://api", "https://tile"),
            "https://tile/map/temp_new/3/1/2.png",
        )
        self.assertEqual(d.upstream_params(), {})


if __name__ == "__main__":
    unittest.main()
