import os
import unittest

from owm_relay.config import Settings


class TestConfig(unittest.TestCase):
    def test_settings_defaults(self):
        s = Settings(OPENWEATHER_KEY="k")
        self.assertEqual(s.api_base_url, "https://api.openweathermap.org")
        self.assertEqual(s.tile_base_url, "https://tile.openweathermap.org")
        self.assertIsNone(s.cache_max_entries)
        self.assertTrue(s.has_credential)

    def test_credential_read_from_environment(self):
        previous = os.environ.get("OPENWEATHER_KEY")
        try:
            os.environ["OPENWEATHER_KEY"] = "from-env"
            self.assertEqual(Settings().openweather_key, "from-env")
        finally:
            if previous is None:
                os.environ.pop("OPENWEATHER_KEY", None)
            else:
                os.environ["OPENWEATHER_KEY"] = previous

    def test_blank_credential_is_not_a_credential(self):
        self.assertFalse(Settings(OPENWEATHER_KEY="   ").has_credential)

    def test_prefixed_env_override(self):
        previous = os.environ.get("RELAY_CACHE_MAX_ENTRIES")
        try:
            os.environ["RELAY_CACHE_MAX_ENTRIES"] = "500"
            self.assertEqual(Settings().cache_max_entries, 500)
        finally:
            if previous is None:
                os.environ.pop("RELAY_CACHE_MAX_ENTRIES", None)
            else:
                os.environ["RELAY_CACHE_MAX_ENTRIES"] = previous

    def test_base_url_trailing_slash_stripped(self):
        s = Settings(api_base_url="http://localhost:9000/")
        self.assertEqual(s.api_base_url, "http://localhost:9000")


if __name__ == "__main__":
    unittest.main()
