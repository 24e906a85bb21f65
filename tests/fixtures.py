from datetime import datetime, timedelta, timezone

from plexgauge_pkg.models import Library, CatalogContainer, CatalogNode, MediaVariant

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def variant(media_id, audio_channels=2, audio_codec='aac', video_codec='h264',
            video_resolution='1080', part_sizes=(1000,), deleted=False):
    return MediaVariant(
        id=media_id,
        deleted=deleted,
        audio_channels=audio_channels,
        audio_codec=audio_codec,
        video_codec=video_codec,
        video_resolution=video_resolution,
        part_sizes=list(part_sizes),
    )


def movie(rating_key, *media):
    return CatalogNode(type='movie', rating_key=str(rating_key), media=list(media))


def episode(rating_key, *media, season='', show=''):
    return CatalogNode(
        type='episode', rating_key=str(rating_key), media=list(media),
        parent_rating_key=season, grandparent_rating_key=show,
    )


def node(node_type, rating_key):
    return CatalogNode(type=node_type, rating_key=str(rating_key))


def container(section_id, *nodes):
    return CatalogContainer(library_section_id=str(section_id), nodes=list(nodes))


class FakeCatalogClient:
    """In-memory catalog keyed by section key and rating key."""

    def __init__(self):
        self.libraries = {}
        self.contents = {}
        self.children = {}
        self.calls = []
        self.errors = {}

    def set_library(self, section_key, updated_at, *nodes):
        self.libraries[section_key] = Library(section_key=section_key, updated_at=updated_at, title=f"Library {section_key}")
        self.contents[section_key] = container(section_key, *nodes)

    def touch(self, section_key, updated_at):
        library = self.libraries[section_key]
        self.libraries[section_key] = Library(section_key=section_key, updated_at=updated_at, title=library.title)

    def list_libraries(self):
        self.calls.append(('list',))
        if 'list' in self.errors:
            raise self.errors['list']
        return list(self.libraries.values())

    def fetch_library_content(self, section_key):
        self.calls.append(('content', section_key))
        if ('content', section_key) in self.errors:
            raise self.errors[('content', section_key)]
        return self.contents[section_key]

    def fetch_children(self, rating_key):
        self.calls.append(('children', rating_key))
        if ('children', rating_key) in self.errors:
            raise self.errors[('children', rating_key)]
        return self.children[rating_key]


class Clock:
    """Returns T0, T0 + step, T0 + 2 * step, ... on successive calls."""

    def __init__(self, start=T0, step=timedelta(minutes=10)):
        self.now = start - step
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now
