import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

logger = logging.getLogger(__name__)

LABEL_NAMES = ('audio_channels', 'audio_codec', 'media_type', 'video_codec', 'video_resolution')

def utcnow():
    return datetime.now(timezone.utc)


def from_timestamp(value):
    """Absolute UTC time for a Plex epoch timestamp."""
    return datetime.fromtimestamp(int(value or 0), timezone.utc)


SKIPPED_TYPES = {'artist', 'album'}
CONTAINER_TYPES = {'show', 'season'}
PLAYABLE_TYPES = {'movie', 'episode'}


@dataclass(frozen=True)
class MediaItem:
    """One physical media variant of a movie or an episode."""
    id: int
    section_key: str
    media_type: str
    audio_channels: int = 0
    audio_codec: str = ''
    video_codec: str = ''
    video_resolution: str = ''
    size: int = 0
    parent_rating_key: str = ''
    grandparent_rating_key: str = ''

    def differs_from(self, other):
        """True when any label-relevant field differs. Size is not compared."""
        return (
            self.audio_channels != other.audio_channels
            or self.audio_codec != other.audio_codec
            or self.video_codec != other.video_codec
            or self.video_resolution != other.video_resolution
        )

    def labels(self):
        return {
            'audio_channels': str(self.audio_channels),
            'audio_codec': self.audio_codec,
            'media_type': self.media_type,
            'video_codec': self.video_codec,
            'video_resolution': self.video_resolution,
        }


@dataclass(frozen=True)
class Library:
    section_key: str
    updated_at: datetime
    title: str = ''
    type: str = ''


@dataclass(frozen=True)
class MediaVariant:
    id: int
    deleted: bool = False
    audio_channels: int = 0
    audio_codec: str = ''
    video_codec: str = ''
    video_resolution: str = ''
    part_sizes: List[int] = field(default_factory=list)

    @property
    def is_degenerate(self):
        # Placeholder variants carry neither audio channels nor a resolution
        return not self.audio_channels and not self.video_resolution

    @property
    def size(self):
        return sum(self.part_sizes)


@dataclass(frozen=True)
class CatalogNode:
    type: str
    rating_key: str = ''
    parent_rating_key: str = ''
    grandparent_rating_key: str = ''
    library_section_id: str = ''
    title: str = ''
    media: List[MediaVariant] = field(default_factory=list)


@dataclass(frozen=True)
class CatalogContainer:
    library_section_id: str = ''
    nodes: List[CatalogNode] = field(default_factory=list)


class Snapshot:
    """State carried between refresh cycles. Owned by the collector."""

    def __init__(self):
        self.items: Dict[int, MediaItem] = {}
        self.last_refresh: Optional[datetime] = None
        self.skipped_section_keys: Set[str] = set()

    def is_skippable(self, library):
        if self.last_refresh is None:
            return False
        return library.updated_at < self.last_refresh

    def __len__(self):
        return len(self.items)


class RefreshStats:
    def __init__(self, start_time=None):
        self.start_time = start_time or utcnow()
        self.end_time = None
        self.added = 0
        self.updated = 0
        self.removed = 0
        self.unchanged = 0
        self.retained = 0
        self.total = 0
        self.scanned_sections = []
        self.skipped_sections = []

    @property
    def changed(self):
        return bool(self.added or self.updated or self.removed)

    def finish(self, total):
        self.total = total
        self.end_time = utcnow()

    def get_run_time(self):
        return (self.end_time or utcnow()) - self.start_time

    def to_dict(self):
        return {
            'start_time': self.start_time.isoformat(),
            'duration_seconds': self.get_run_time().total_seconds(),
            'added': self.added,
            'updated': self.updated,
            'removed': self.removed,
            'unchanged': self.unchanged,
            'retained': self.retained,
            'total': self.total,
            'scanned_sections': list(self.scanned_sections),
            'skipped_sections': list(self.skipped_sections),
        }
