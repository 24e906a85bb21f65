import os
import tempfile
import unittest
from unittest.mock import patch

from plexgauge_pkg.config import load_config, validate_config
from plexgauge_pkg.errors import ConfigError

CONFIG_INI = """
[plex]
url = http://plex.local:32400
token = ini_token

[web]
port = 9100

[behaviour]
refresh_interval = 15
refresh_timeout = 600

[notifications]
enabled = true
discord_webhook_url = https://discord.example/webhook
"""

class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        fd, self.path = tempfile.mkstemp(suffix='.ini')
        with os.fdopen(fd, 'w') as f:
            f.write(CONFIG_INI)

    def tearDown(self):
        os.remove(self.path)

    @patch.dict(os.environ, {}, clear=True)
    def test_reads_ini(self):
        cfg = load_config(self.path)

        self.assertEqual(cfg['PLEX_URL'], 'http://plex.local:32400')
        self.assertEqual(cfg['TOKEN'], 'ini_token')
        self.assertEqual(cfg['HTTP_PORT'], 9100)
        self.assertEqual(cfg['REFRESH_INTERVAL'], 15)
        self.assertEqual(cfg['REFRESH_TIMEOUT'], 600)
        self.assertTrue(cfg['NOTIFICATIONS_ENABLED'])

    @patch.dict(os.environ, {'PLEX_TOKEN': 'env_token', 'HTTP_PORT': '9200'}, clear=True)
    def test_env_overrides_ini(self):
        cfg = load_config(self.path)

        self.assertEqual(cfg['TOKEN'], 'env_token')
        self.assertEqual(cfg['HTTP_PORT'], 9200)

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults_without_file(self):
        cfg = load_config(os.path.join(tempfile.gettempdir(), 'does-not-exist.ini'))

        self.assertIsNone(cfg['PLEX_URL'])
        self.assertEqual(cfg['HTTP_PORT'], 9090)
        self.assertEqual(cfg['REFRESH_INTERVAL'], 10)
        self.assertEqual(cfg['REFRESH_TIMEOUT'], 0)
        self.assertEqual(cfg['LOG_LEVEL'], 'INFO')
        self.assertFalse(cfg['NOTIFICATIONS_ENABLED'])

    @patch.dict(os.environ, {'REFRESH_INTERVAL': 'often'}, clear=True)
    def test_invalid_value_uses_fallback(self):
        cfg = load_config(self.path)

        self.assertEqual(cfg['REFRESH_INTERVAL'], 10)

class TestValidateConfig(unittest.TestCase):
    def setUp(self):
        self.cfg = {
            'PLEX_URL': 'http://mock:32400',
            'TOKEN': 'mock_token',
            'HTTP_PORT': 9090,
            'REFRESH_INTERVAL': 10,
            'REFRESH_TIMEOUT': 0,
        }

    def test_valid(self):
        self.assertIs(validate_config(self.cfg), self.cfg)

    def test_missing_url(self):
        self.cfg['PLEX_URL'] = None
        with self.assertRaises(ConfigError):
            validate_config(self.cfg)

    def test_missing_token(self):
        self.cfg['TOKEN'] = ''
        with self.assertRaises(ConfigError):
            validate_config(self.cfg)

    def test_bad_interval(self):
        self.cfg['REFRESH_INTERVAL'] = 0
        with self.assertRaises(ConfigError):
            validate_config(self.cfg)

    def test_negative_timeout(self):
        self.cfg['REFRESH_TIMEOUT'] = -5
        with self.assertRaises(ConfigError):
            validate_config(self.cfg)

if __name__ == '__main__':
    unittest.main()
