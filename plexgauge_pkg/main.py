import os
import logging
import logging.handlers
import argparse
import signal
import sys
import threading

from .client import PlexCatalogClient
from .collector import MediaCollector
from .config import load_config, validate_config
from .errors import PlexgaugeError
from .scheduler import RefreshScheduler
from .web import run_web_server

# ANSI escape codes
BOLD = '\033[1m'
RESET = '\033[0m'

logger = logging.getLogger(__name__)

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Plexgauge - Plex media library metrics")
    parser.add_argument('--config', default='config.ini', help="Path to config.ini")
    parser.add_argument('-u', '--url', help="Base URL to Plex Media Server")
    parser.add_argument('-t', '--token', help="Authentication token for Plex Media Server")
    parser.add_argument('-p', '--port', type=int, help="HTTP port to listen to")
    parser.add_argument('--interval', type=int, help="Refresh interval in minutes")
    parser.add_argument('--once', action='store_true', help="Run a single refresh, log the summary and exit")
    return parser.parse_args(argv)

def apply_cli_overrides(config, args):
    if args.url:
        config['PLEX_URL'] = args.url
    if args.token:
        config['TOKEN'] = args.token
    if args.port is not None:
        config['HTTP_PORT'] = args.port
    if args.interval is not None:
        config['REFRESH_INTERVAL'] = args.interval
    return config

def setup_logging(config):
    log_file = os.path.join(os.getcwd(), 'plexgauge.log')

    handlers = [logging.StreamHandler(sys.stdout)]

    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=5*1024*1024, backupCount=5, encoding='utf-8'
    )
    file_handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', datefmt='%d %b %Y | %I:%M:%S %p'))
    handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, str(config['LOG_LEVEL']).upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%d %b %Y | %I:%M:%S %p',
        handlers=handlers,
        force=True
    )

def main(argv=None):
    args = parse_args(argv)

    config = apply_cli_overrides(load_config(args.config), args)
    setup_logging(config)

    logger.info("Starting Plexgauge")

    try:
        validate_config(config)
        client = PlexCatalogClient(config['PLEX_URL'], config['TOKEN'], timeout=config['PLEX_TIMEOUT'])
        client.connect()
        collector = MediaCollector(client, refresh_timeout=config['REFRESH_TIMEOUT'])
        collector.refresh()
    except PlexgaugeError as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(1)

    if args.once:
        sys.exit(0)

    scheduler = RefreshScheduler(collector, config, interval=config['REFRESH_INTERVAL'])

    web_thread = threading.Thread(
        target=run_web_server, args=(scheduler, config['HTTP_HOST'], config['HTTP_PORT']), daemon=True
    )
    web_thread.start()
    logger.info(f"🕸️ Metrics available on http://{config['HTTP_HOST']}:{config['HTTP_PORT']}/metrics")

    logger.info(f"Will refresh every {BOLD}{config['REFRESH_INTERVAL']}{RESET} minutes")
    scheduler.start()

    # Graceful Shutdown Handling
    stop_event = threading.Event()

    def signal_handler(signum, frame):
        logger.info(f"🛑 Received signal {signum}, stopping...")
        stop_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    while not stop_event.is_set():
        stop_event.wait(1)

    scheduler.stop(timeout=5)
    logger.info("👋 Plexgauge shutdown complete.")

if __name__ == '__main__':
    main()
