"""Content type enumerations for entries and collections."""

from __future__ import annotations

from enum import StrEnum


class ContentType(StrEnum):
    """Contentful content type of an entry."""
    PODCAST = "podcast"
    PODCAST_EPISODE = "podcastEpisode"
    MEDITATION = "meditation"
    MEDITATION_CATEGORY = "meditationCategory"
    LITURGY = "liturgy"
    LITURGY_ITEM = "liturgyItem"
    TIER = "tier"
    GENERIC = "generic"  # anything else: assets, contributors, tags, seasons

    @classmethod
    def parse(cls, value: str | None) -> ContentType:
        try:
            return cls(value)
        except ValueError:
            return cls.GENERIC


class CollectionKind(StrEnum):
    """Grouping that a feed is built from."""
    PODCAST = "podcast"
    MEDITATION_CATEGORY = "meditationCategory"
    LITURGY = "liturgy"
    # Pseudo-collections: entries of a kind that have no parent
    UNCATEGORIZED_MEDITATIONS = "uncategorizedMeditations"
    UNCATEGORIZED_LITURGY_ITEMS = "uncategorizedLiturgyItems"


# Entry kinds whose visibility depends on the viewer's pledge
GATED_CONTENT_TYPES = frozenset({
    ContentType.PODCAST_EPISODE,
    ContentType.MEDITATION,
    ContentType.LITURGY_ITEM,
})

COLLECTION_CONTENT_TYPES = {
    ContentType.PODCAST: CollectionKind.PODCAST,
    ContentType.MEDITATION_CATEGORY: CollectionKind.MEDITATION_CATEGORY,
    ContentType.LITURGY: CollectionKind.LITURGY,
}

# Field on a gated entry that links to its parent collection
PARENT_FIELDS = {
    ContentType.PODCAST_EPISODE: "podcast",
    ContentType.MEDITATION: "category",
    ContentType.LITURGY_ITEM: "liturgy",
}

# Content type of the entries that make up each kind of feed
MEMBER_CONTENT_TYPES = {
    CollectionKind.PODCAST: ContentType.PODCAST_EPISODE,
    CollectionKind.MEDITATION_CATEGORY: ContentType.MEDITATION,
    CollectionKind.UNCATEGORIZED_MEDITATIONS: ContentType.MEDITATION,
    CollectionKind.LITURGY: ContentType.LITURGY_ITEM,
    CollectionKind.UNCATEGORIZED_LITURGY_ITEMS: ContentType.LITURGY_ITEM,
}

UNCATEGORIZED_KINDS = frozenset({
    CollectionKind.UNCATEGORIZED_MEDITATIONS,
    CollectionKind.UNCATEGORIZED_LITURGY_ITEMS,
})
