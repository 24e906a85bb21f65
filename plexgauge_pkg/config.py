import os
import configparser
import logging

from .errors import ConfigError

def get_config_val(config, env_key, config_section, config_key, fallback=None, cast_func=None):
    """Get config value from env var or config.ini, with optional type casting."""
    # Try environment variable first
    val = os.getenv(env_key)

    # Try config.ini second
    if val is None:
        try:
            val = config.get(config_section, config_key, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError):
            val = fallback

    if val is None:
        return None

    # Cast value if needed
    if cast_func:
        try:
            return cast_func(val)
        except (ValueError, TypeError):
            logging.warning(f"Invalid value for {env_key}/{config_key}: {val}. Using fallback: {fallback}")
            return fallback
    return val

def _bool(x):
    return str(x).lower() == 'true'

def load_config(config_path='config.ini'):
    config = configparser.ConfigParser()
    config.read(config_path)

    cfg = {}

    # Load config with Env Var overrides
    cfg['PLEX_URL'] = get_config_val(config, 'PLEX_URL', 'plex', 'url')
    cfg['TOKEN'] = get_config_val(config, 'PLEX_TOKEN', 'plex', 'token')
    cfg['PLEX_TIMEOUT'] = get_config_val(config, 'PLEX_TIMEOUT', 'plex', 'timeout', 30, int)

    cfg['HTTP_HOST'] = get_config_val(config, 'HTTP_HOST', 'web', 'host', '0.0.0.0')
    cfg['HTTP_PORT'] = get_config_val(config, 'HTTP_PORT', 'web', 'port', 9090, int)

    cfg['LOG_LEVEL'] = get_config_val(config, 'LOG_LEVEL', 'logs', 'loglevel', 'INFO')
    cfg['REFRESH_INTERVAL'] = get_config_val(config, 'REFRESH_INTERVAL', 'behaviour', 'refresh_interval', 10, int)
    cfg['REFRESH_TIMEOUT'] = get_config_val(config, 'REFRESH_TIMEOUT', 'behaviour', 'refresh_timeout', 0, int)

    cfg['NOTIFICATIONS_ENABLED'] = get_config_val(config, 'NOTIFICATIONS_ENABLED', 'notifications', 'enabled', 'false', _bool)
    cfg['DISCORD_WEBHOOK_URL'] = get_config_val(config, 'DISCORD_WEBHOOK_URL', 'notifications', 'discord_webhook_url')
    cfg['DISCORD_WEBHOOK_NAME'] = "Plexgauge"

    return cfg

def validate_config(cfg):
    """Raise ConfigError when the service cannot start with this config."""
    if not cfg.get('PLEX_URL'):
        raise ConfigError("PLEX_URL is not configured.")
    if not cfg.get('TOKEN'):
        raise ConfigError("PLEX_TOKEN is not configured.")
    if not cfg.get('HTTP_PORT') or cfg['HTTP_PORT'] <= 0:
        raise ConfigError(f"Invalid HTTP port: {cfg.get('HTTP_PORT')}")
    if not cfg.get('REFRESH_INTERVAL') or cfg['REFRESH_INTERVAL'] <= 0:
        raise ConfigError(f"Invalid refresh interval: {cfg.get('REFRESH_INTERVAL')}")
    if cfg.get('REFRESH_TIMEOUT', 0) < 0:
        raise ConfigError(f"Invalid refresh timeout: {cfg.get('REFRESH_TIMEOUT')}")
    return cfg
