"""
Per-entity cache of automation score details.

Results are keyed by business entity id and must be invalidated whenever
the counts behind them change (tool adoption, SOPs, integrations,
categories, processes). Recommendation status updates are applied to the
cached record under a lock per (entity, recommendation id).

Every invalidation bumps a generation counter. A result computed from a
read that started before an invalidation is not stored: callers take
``version(entity_id)`` before reading and pass it to ``set``.
"""
import logging
import threading
from typing import Callable, Dict, Hashable, Optional, Tuple, Union

from src.automation.engine import RecommendationNotFound, update_recommendation
from src.automation.types import AutomationRecommendation, AutomationScoreDetails, RecommendationUpdate

logger = logging.getLogger(__name__)


class AutomationScoreCache:
    """Thread-safe in-process cache with explicit invalidation."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, AutomationScoreDetails] = {}
        self._recommendation_locks: Dict[Tuple[Hashable, str], threading.Lock] = {}
        self._generations: Dict[Hashable, int] = {}
        self._epoch = 0
        self.hits = 0
        self.misses = 0

    def get(self, entity_id: Hashable) -> Optional[AutomationScoreDetails]:
        if not self.enabled:
            return None
        with self._lock:
            details = self._entries.get(entity_id)
            if details is None:
                self.misses += 1
            else:
                self.hits += 1
        if details is not None:
            logger.debug(f"Automation score cache hit for entity {entity_id}")
        return details

    def version(self, entity_id: Hashable) -> Tuple[int, int]:
        with self._lock:
            return self._epoch, self._generations.get(entity_id, 0)

    def set(
        self,
        entity_id: Hashable,
        details: AutomationScoreDetails,
        version: Optional[Tuple[int, int]] = None,
    ) -> AutomationScoreDetails:
        """
        Store ``details`` for ``entity_id`` and return them.

        When ``version`` is given and the entity was invalidated since it was
        taken, the result is returned but not stored.
        """
        if not self.enabled:
            return details
        with self._lock:
            current = (self._epoch, self._generations.get(entity_id, 0))
            if version is not None and version != current:
                logger.debug(f"Discarding automation score for entity {entity_id} computed before invalidation")
                return details
            self._entries[entity_id] = details
        return details

    def get_or_compute(
        self, entity_id: Hashable, compute: Callable[[], AutomationScoreDetails]
    ) -> AutomationScoreDetails:
        details = self.get(entity_id)
        if details is None:
            version = self.version(entity_id)
            details = self.set(entity_id, compute(), version=version)
        return details

    def invalidate(self, entity_id: Hashable) -> bool:
        """Drop one entity's cached result. Returns True if something was cached."""
        with self._lock:
            self._generations[entity_id] = self._generations.get(entity_id, 0) + 1
            removed = self._entries.pop(entity_id, None) is not None
            for key in [k for k in self._recommendation_locks if k[0] == entity_id]:
                del self._recommendation_locks[key]
        if removed:
            logger.info(f"Invalidated automation score cache for entity {entity_id}")
        return removed

    def invalidate_all(self) -> int:
        """Drop every cached result, keeping hit/miss counters."""
        with self._lock:
            self._epoch += 1
            removed = len(self._entries)
            self._entries.clear()
            self._recommendation_locks.clear()
        if removed:
            logger.info(f"Invalidated automation score cache for {removed} entities")
        return removed

    def clear(self):
        self.invalidate_all()
        with self._lock:
            self.hits = 0
            self.misses = 0

    def _recommendation_lock(self, entity_id: Hashable, recommendation_id: str) -> threading.Lock:
        with self._lock:
            return self._recommendation_locks.setdefault(
                (entity_id, recommendation_id), threading.Lock()
            )

    def update_recommendation(
        self,
        entity_id: Hashable,
        recommendation_id: str,
        update: Union[RecommendationUpdate, dict],
        details: Optional[AutomationScoreDetails] = None,
    ) -> AutomationRecommendation:
        """
        Apply a status update to the cached record for ``entity_id``.

        ``details`` is used when nothing is cached (e.g. caching disabled).

        Raises:
            RecommendationNotFound: nothing is cached for the entity, or the
                cached result has no such recommendation.
        """
        with self._recommendation_lock(entity_id, recommendation_id):
            with self._lock:
                details = self._entries.get(entity_id, details)
            if details is None:
                raise RecommendationNotFound(recommendation_id)
            return update_recommendation(details, recommendation_id, update)

    def stats(self) -> dict:
        with self._lock:
            total = self.hits + self.misses
            return {
                "enabled": self.enabled,
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": round(self.hits / total, 3) if total else 0.0,
            }


def _build_default_cache() -> AutomationScoreCache:
    from src.core.config import settings
    return AutomationScoreCache(enabled=settings.cache_enabled)


# Global instance
score_cache = _build_default_cache()
