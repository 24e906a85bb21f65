import logging
import threading
from time import monotonic

from .errors import RefreshInProgressError, RefreshTimeoutError
from .flattener import flatten
from .metrics import AggregateCounters, REFRESH_DURATION_SECONDS, LAST_REFRESH_TIMESTAMP
from .models import Snapshot, RefreshStats, utcnow

# ANSI escape codes for text formatting
BOLD = '\033[1m'
RESET = '\033[0m'

logger = logging.getLogger(__name__)


class MediaCollector:
    """Keeps the media gauges in step with the Plex catalog.

    Every refresh() walks the catalog (skipping libraries untouched since the
    previous cycle started), diffs the result against the previous snapshot
    and moves the gauges by the difference only.
    """

    def __init__(self, client, counters=None, refresh_timeout=0, clock=utcnow):
        self.client = client
        self.counters = counters or AggregateCounters()
        self.refresh_timeout = refresh_timeout
        self.clock = clock
        self.snapshot = Snapshot()
        self.refresh_lock = threading.Lock()
        self.is_refreshing = False
        self.last_stats = None
        self.last_error = None

    def refresh(self):
        """Run one refresh cycle and return its RefreshStats.

        Nothing is committed when fetching or flattening fails; the error is
        raised to the caller and the previous snapshot stays authoritative.
        """
        if not self.refresh_lock.acquire(blocking=False):
            logger.warning("Refresh already in progress, skipping...")
            raise RefreshInProgressError("Refresh already in progress")

        self.is_refreshing = True
        try:
            with REFRESH_DURATION_SECONDS.time():
                stats = self._refresh()
            self.last_stats = stats
            self.last_error = None
            return stats
        except Exception as e:
            self.last_error = str(e)
            raise
        finally:
            self.is_refreshing = False
            self.refresh_lock.release()

    def _refresh(self):
        # Captured before any I/O so that server-side changes landing during
        # this cycle are seen again by the next one.
        cycle_start = self.clock()
        deadline = monotonic() + self.refresh_timeout if self.refresh_timeout else None
        stats = RefreshStats(start_time=cycle_start)

        new_items = self._collect(stats, deadline)
        self._reconcile(new_items, stats)

        self.snapshot.last_refresh = cycle_start
        LAST_REFRESH_TIMESTAMP.set(cycle_start.timestamp())
        stats.finish(len(self.snapshot))

        logger.info(
            f"Collection of {BOLD}{stats.total}{RESET} media items finished. "
            f"Added {stats.added}, updated {stats.updated}, and removed {stats.removed}."
        )
        return stats

    def _check_deadline(self, deadline):
        if deadline is not None and monotonic() > deadline:
            raise RefreshTimeoutError(f"Refresh exceeded {self.refresh_timeout} seconds")

    def _collect(self, stats, deadline):
        """Fetch and flatten every library modified since the last refresh."""
        self.snapshot.skipped_section_keys = set()

        def fetch_children(rating_key):
            self._check_deadline(deadline)
            return self.client.fetch_children(rating_key)

        self._check_deadline(deadline)
        libraries = self.client.list_libraries()
        new_items = []

        for library in libraries:
            if self.snapshot.is_skippable(library):
                logger.debug(f"Library {library.title or library.section_key} unchanged since last refresh, skipping")
                self.snapshot.skipped_section_keys.add(library.section_key)
                stats.skipped_sections.append(library.section_key)
                continue

            self._check_deadline(deadline)
            content = self.client.fetch_library_content(library.section_key)
            items = flatten(content, fetch_children, library.section_key)
            logger.debug(f"Library {library.title or library.section_key}: {len(items)} media items")
            stats.scanned_sections.append(library.section_key)
            new_items.extend(items)

        return new_items

    def _reconcile(self, new_items, stats):
        current = {}
        for item in new_items:
            if item.id in current:
                logger.warning(f"Media {item.id} reported twice, keeping the last one")
            current[item.id] = item

        residual = dict(self.snapshot.items)

        for item in current.values():
            old = residual.pop(item.id, None)
            if old is None:
                self.counters.add(item)
                stats.added += 1
            elif item.differs_from(old):
                # Two separate moves: the old and new label sets are distinct series
                self.counters.remove(old)
                self.counters.add(item)
                stats.updated += 1
            else:
                stats.unchanged += 1

        for item in residual.values():
            if item.section_key in self.snapshot.skipped_section_keys:
                current[item.id] = item
                stats.retained += 1
                continue
            self.counters.remove(item)
            stats.removed += 1

        self.snapshot.items = current
