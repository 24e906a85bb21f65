import logging

from .errors import UnknownNodeTypeError
from .models import MediaItem, SKIPPED_TYPES, CONTAINER_TYPES, PLAYABLE_TYPES

logger = logging.getLogger(__name__)


def flatten(container, fetch_children, section_key=None):
    """Walk a catalog container depth-first and return its media items.

    fetch_children(rating_key) must return the CatalogContainer holding the
    children of a show or season. It is called once per container node.
    Raises UnknownNodeTypeError for node types this walker does not know.
    """
    section_key = container.library_section_id or section_key
    items = []

    for node in container.nodes:
        if node.type in SKIPPED_TYPES:
            continue
        elif node.type in CONTAINER_TYPES:
            children = fetch_children(node.rating_key)
            items.extend(flatten(children, fetch_children, section_key))
        elif node.type in PLAYABLE_TYPES:
            items.extend(analyze_node(node, section_key))
        else:
            raise UnknownNodeTypeError(node.type)

    return items


def analyze_node(node, section_key=None):
    """Media items for a playable node, one per usable media variant."""
    section_key = str(node.library_section_id or section_key or '')
    items = []

    for media in node.media:
        if media.deleted:
            logger.debug(f"Skipping deleted media {media.id} of {node.rating_key}")
            continue
        if media.is_degenerate:
            logger.debug(f"Skipping placeholder media {media.id} of {node.rating_key}")
            continue

        items.append(MediaItem(
            id=media.id,
            section_key=section_key,
            media_type=node.type,
            audio_channels=media.audio_channels,
            audio_codec=media.audio_codec,
            video_codec=media.video_codec,
            video_resolution=media.video_resolution,
            size=media.size,
            parent_rating_key=node.parent_rating_key,
            grandparent_rating_key=node.grandparent_rating_key,
        ))

    return items
