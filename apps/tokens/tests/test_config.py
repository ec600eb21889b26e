import unittest
from pathlib import Path
from unittest.mock import patch

from apps.tokens.config import get_settings


class SettingsTests(unittest.TestCase):
    def tearDown(self) -> None:
        get_settings.cache_clear()

    def test_defaults(self) -> None:
        with patch.dict('os.environ', {}, clear=True):
            get_settings.cache_clear()
            settings = get_settings()

        self.assertEqual(settings.tokens_path, Path('tokens'))
        self.assertEqual(settings.catalog_path, Path('networks/networks.json'))
        self.assertEqual(settings.dist_path, Path('dist'))
        self.assertEqual(settings.template_token, '_example')
        self.assertEqual(settings.legacy_network_id, 1)
        self.assertFalse(settings.price_index_keyed_by_network)
        self.assertEqual(settings.log_level, 'INFO')

    def test_env_overrides(self) -> None:
        with patch.dict(
            'os.environ',
            {
                'TOKEN_LISTING_ROOT': '/srv/listing',
                'DIST_DIR': '/tmp/out',
                'LEGACY_NETWORK_ID': '7',
                'PRICE_INDEX_KEYED_BY_NETWORK': 'yes',
                'LOG_LEVEL': 'debug'
            },
            clear=False
        ):
            get_settings.cache_clear()
            settings = get_settings()

        self.assertEqual(settings.tokens_path, Path('/srv/listing/tokens'))
        self.assertEqual(settings.dist_path, Path('/tmp/out'))
        self.assertEqual(settings.legacy_network_id, 7)
        self.assertTrue(settings.price_index_keyed_by_network)
        self.assertEqual(settings.log_level, 'DEBUG')


if __name__ == '__main__':
    unittest.main()
