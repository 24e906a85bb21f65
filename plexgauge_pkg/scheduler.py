import logging
import threading

import schedule

from .errors import PlexgaugeError, RefreshInProgressError
from .metrics import REFRESH_ERRORS_TOTAL
from .notifications import notify_refresh_failure, notify_refresh_summary

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Runs collector.refresh() every `interval` minutes on its own thread.

    Jobs run on the scheduler thread, one at a time. A failing cycle is
    logged and counted; the loop keeps going.
    """

    def __init__(self, collector, config, interval=10, tick=1.0):
        self.collector = collector
        self.config = config
        self.interval = interval
        self.tick = tick
        self.scheduler = schedule.Scheduler()
        self.stop_event = threading.Event()
        self.thread = None

    def run_refresh(self):
        try:
            stats = self.collector.refresh()
        except RefreshInProgressError:
            return None
        except PlexgaugeError as e:
            REFRESH_ERRORS_TOTAL.inc()
            logger.error(f"Refresh failed: {e}")
            notify_refresh_failure(self.config, str(e))
            return None
        except Exception as e:
            REFRESH_ERRORS_TOTAL.inc()
            logger.exception(f"Unexpected error during refresh: {e}")
            notify_refresh_failure(self.config, str(e))
            return None

        notify_refresh_summary(self.config, stats)
        return stats

    def start(self):
        self.scheduler.every(self.interval).minutes.do(self.run_refresh)
        self.thread = threading.Thread(target=self._loop, name='refresh-scheduler', daemon=True)
        self.thread.start()
        logger.info(f"Refreshing every {self.interval} minutes")
        return self.thread

    def _loop(self):
        while not self.stop_event.is_set():
            self.scheduler.run_pending()
            self.stop_event.wait(self.tick)
        self.scheduler.clear()

    def stop(self, timeout=None):
        self.stop_event.set()
        if self.thread:
            self.thread.join(timeout)
