import unittest

from owm_relay.config import Settings
from owm_relay.main import app, create_app


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "OpenWeather Relay")

    def test_each_app_gets_its_own_cache(self):
        settings = Settings(OPENWEATHER_KEY="k")
        first = create_app(settings)
        second = create_app(settings)
        self.assertIsNot(first.state.gateway.cache, second.state.gateway.cache)


if __name__ == "__main__":
    unittest.main()
