"""
Deduplicator - Drops repeated movements and same-entity shuffles.

State is a bounded, insertion-ordered set of seen ids owned by one
Deduplicator instance. Each insert that pushes it past capacity forgets
the oldest half, so the set never holds more than capacity ids and a
very old id replayed after eviction is accepted again.

Dedup is only guaranteed within one long-lived instance; there is no
cross-process coordination.
"""

import logging
from collections import OrderedDict
from typing import Iterable

from movements.models import Movement


logger = logging.getLogger(__name__)


DEFAULT_CAPACITY = 10_000


class Deduplicator:
    """
    Stable filter over a stream of movements.

    Usage:
        dedup = Deduplicator()
        fresh = dedup.deduplicate(movements)
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 2:
            raise ValueError(f"capacity must be >= 2, got {capacity}")
        self._capacity = capacity
        self._seen: OrderedDict[str, None] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def __contains__(self, movement_id: object) -> bool:
        return movement_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    @staticmethod
    def is_same_entity(movement: Movement) -> bool:
        """Both sides resolve to the same entity."""
        return (
            movement.from_entity_id is not None
            and movement.to_entity_id is not None
            and movement.from_entity_id == movement.to_entity_id
        )

    def deduplicate(self, movements: Iterable[Movement]) -> list[Movement]:
        """
        Keep first occurrences, drop same-entity records.

        Same-entity records are not recorded as seen.
        """
        kept: list[Movement] = []
        duplicates = 0
        same_entity = 0

        for movement in movements:
            if movement.id in self._seen:
                duplicates += 1
                continue

            if self.is_same_entity(movement):
                same_entity += 1
                continue

            self._seen[movement.id] = None
            self._evict()
            kept.append(movement)

        if duplicates or same_entity:
            logger.debug(
                f"[Deduplicator] Kept {len(kept)}, "
                f"dropped {duplicates} duplicates and {same_entity} same-entity"
            )

        return kept

    def _evict(self) -> None:
        if len(self._seen) <= self._capacity:
            return

        to_drop = len(self._seen) // 2
        for _ in range(to_drop):
            self._seen.popitem(last=False)

        logger.info(
            f"[Deduplicator] Evicted {to_drop} oldest ids, {len(self._seen)} remain"
        )

    def reset(self) -> None:
        """Forget all seen ids."""
        self._seen.clear()

    def __repr__(self) -> str:
        return f"<Deduplicator(seen={len(self._seen)}, capacity={self._capacity})>"
