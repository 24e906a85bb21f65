import threading

from prometheus_client import Counter, Gauge, Histogram, REGISTRY

from .models import LABEL_NAMES

# Define Metrics
REFRESH_ERRORS_TOTAL = Counter('plex_media_refresh_errors_total', 'Total number of failed refresh cycles')
REFRESH_DURATION_SECONDS = Histogram('plex_media_refresh_duration_seconds', 'Time spent refreshing the catalog')
LAST_REFRESH_TIMESTAMP = Gauge('plex_media_last_refresh_timestamp_seconds', 'Start time of the last successful refresh')


class AggregateCounters:
    """Label-partitioned item count and byte size gauges.

    Values only move through adjust(); nothing is ever recomputed from the
    catalog. A label combination that drops to zero keeps being exported.
    """

    def __init__(self, registry=REGISTRY):
        self.count = Gauge(
            'plex_media_items_count_total', 'The total count of media items.',
            LABEL_NAMES, registry=registry
        )
        self.bytes = Gauge(
            'plex_media_items_bytes_total', 'The total bytes size of media items.',
            LABEL_NAMES, registry=registry
        )
        self._values = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(labels):
        return tuple(labels[name] for name in LABEL_NAMES)

    def adjust(self, labels, item_delta, byte_delta):
        key = self._key(labels)
        self.count.labels(*key).inc(item_delta)
        self.bytes.labels(*key).inc(byte_delta)
        with self._lock:
            count, size = self._values.get(key, (0, 0))
            self._values[key] = (count + item_delta, size + byte_delta)

    def add(self, item):
        self.adjust(item.labels(), 1, item.size)

    def remove(self, item):
        self.adjust(item.labels(), -1, -item.size)

    def item_count(self, labels):
        with self._lock:
            return self._values.get(self._key(labels), (0, 0))[0]

    def byte_size(self, labels):
        with self._lock:
            return self._values.get(self._key(labels), (0, 0))[1]

    def snapshot(self):
        """Copy of every label combination seen so far -> (count, bytes)."""
        with self._lock:
            return dict(self._values)
