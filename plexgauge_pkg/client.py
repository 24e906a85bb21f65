import logging
from datetime import timezone

import requests
from plexapi.exceptions import PlexApiException
from plexapi.server import PlexServer

from .errors import CatalogError, SchemaError
from .models import Library, CatalogContainer, CatalogNode, MediaVariant, from_timestamp

logger = logging.getLogger(__name__)


def _int(value, default=0):
    if value in (None, ''):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise SchemaError(f"Expected an integer, got {value!r}")


def to_utc(value):
    """Absolute UTC time for a datetime handed out by plexapi.

    plexapi builds naive local datetimes with fromtimestamp(), which sets
    fold on the repeated hour, so astimezone() resolves them unambiguously.
    """
    if value is None:
        return from_timestamp(0)
    return value.astimezone(timezone.utc)


def library_from_section(section):
    return Library(
        section_key=str(section.key),
        updated_at=to_utc(section.updatedAt),
        title=section.title or '',
        type=section.type or '',
    )


def parse_media(elem):
    return MediaVariant(
        id=_int(elem.attrib.get('id')),
        deleted=bool(_int(elem.attrib.get('deletedAt'))),
        audio_channels=_int(elem.attrib.get('audioChannels')),
        audio_codec=elem.attrib.get('audioCodec', ''),
        video_codec=elem.attrib.get('videoCodec', ''),
        video_resolution=elem.attrib.get('videoResolution', ''),
        part_sizes=[_int(part.attrib.get('size')) for part in elem.findall('Part')],
    )


def parse_container(data):
    """Turn a MediaContainer element into catalog records."""
    if data is None:
        return CatalogContainer()
    nodes = []
    for elem in data:
        nodes.append(CatalogNode(
            type=elem.attrib.get('type', ''),
            rating_key=elem.attrib.get('ratingKey', ''),
            parent_rating_key=elem.attrib.get('parentRatingKey', ''),
            grandparent_rating_key=elem.attrib.get('grandparentRatingKey', ''),
            library_section_id=elem.attrib.get('librarySectionID', ''),
            title=elem.attrib.get('title', ''),
            media=[parse_media(media) for media in elem.findall('Media')],
        ))
    return CatalogContainer(
        library_section_id=data.attrib.get('librarySectionID', ''),
        nodes=nodes,
    )


class PlexCatalogClient:
    """Reads the library catalog of a Plex Media Server."""

    def __init__(self, baseurl, token, timeout=30, session=None):
        self.baseurl = baseurl
        self.token = token
        self.timeout = timeout
        self.plex = None

        # Persistent session for connection pooling
        self.http_session = session or requests.Session()
        self.http_session.headers.update({
            'User-Agent': 'Plexgauge/1.0'
        })

    def connect(self):
        """Connect and test the server. Raises CatalogError on failure."""
        try:
            self.plex = PlexServer(self.baseurl, self.token, session=self.http_session, timeout=self.timeout)
        except (PlexApiException, requests.RequestException) as e:
            raise CatalogError(f"Failed to connect to Plex ({self.baseurl}): {e}") from e
        logger.info(f"Connected to Plex: {self.plex.friendlyName} (v{self.plex.version})")
        return self.plex

    def _query(self, key):
        if not self.plex:
            self.connect()
        try:
            return self.plex.query(key)
        except (PlexApiException, requests.RequestException) as e:
            raise CatalogError(f"Request to {key} failed: {e}") from e

    def list_libraries(self):
        if not self.plex:
            self.connect()
        try:
            sections = self.plex.library.sections()
        except (PlexApiException, requests.RequestException) as e:
            raise CatalogError(f"Failed to list libraries: {e}") from e
        return [library_from_section(section) for section in sections]

    # Content and children stay on raw containers: plexapi's object model
    # drops element types it has no class for, and those must fail the cycle.
    def fetch_library_content(self, section_key):
        return parse_container(self._query(f'/library/sections/{section_key}/all'))

    def fetch_children(self, rating_key):
        return parse_container(self._query(f'/library/metadata/{rating_key}/children'))
