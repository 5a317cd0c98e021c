"""
Movement enrichers.

Entity resolution and tag derivation. Both are pure transforms that
return evolved copies.
"""

from movements.enrichers.entity import (
    EntityEnricher,
    build_entity_table,
    slugify_label,
)
from movements.enrichers.tags import derive_tags, enrich_tags

__all__ = [
    "EntityEnricher",
    "build_entity_table",
    "slugify_label",
    "derive_tags",
    "enrich_tags",
]
