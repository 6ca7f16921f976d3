"""Push-notification topic selection for newly published entries."""

from __future__ import annotations

from vestry.content_types import CollectionKind, ContentType
from vestry.errors import MissingCollectionError
from vestry.models import Collection, Entry

TOPIC_PUBLIC_MEDIA = "new-public-media"
TOPIC_PATRON_PODCAST = "new-patron-podcast"
TOPIC_PATRON_MEDITATION = "new-patron-meditation"
TOPIC_PATRON_LITURGY = "new-patron-liturgy"


def unscoped_topic(entry: Entry, collection: Collection | None) -> str:
    """Topic whose subscribers may play the entry.

    Free previews and episodes of public podcasts go to everyone. Raises
    MissingCollectionError for an episode whose podcast is unknown; such an
    episode is never announced.
    """
    if entry.content_type == ContentType.PODCAST_EPISODE and (
        collection is None or collection.kind != CollectionKind.PODCAST
    ):
        link = entry.parent_link
        raise MissingCollectionError(entry.id, link.id if link else None)

    if entry.is_free_preview:
        return TOPIC_PUBLIC_MEDIA
    if entry.content_type == ContentType.MEDITATION:
        return TOPIC_PATRON_MEDITATION
    if entry.content_type == ContentType.LITURGY_ITEM:
        return TOPIC_PATRON_LITURGY
    if entry.content_type == ContentType.PODCAST_EPISODE and not collection.is_public:
        return TOPIC_PATRON_PODCAST
    return TOPIC_PUBLIC_MEDIA


def topic_scope(namespace: str, stage: str) -> str:
    if namespace == stage:
        return stage
    return f"{namespace}-{stage}"


def notification_topic(entry: Entry, collection: Collection | None, *, namespace: str, stage: str) -> str:
    return f"{unscoped_topic(entry, collection)}-{topic_scope(namespace, stage)}"
