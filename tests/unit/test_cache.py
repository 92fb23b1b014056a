"""
Unit tests for the per-entity automation score cache.
"""
import threading

import pytest

from src.automation.cache import AutomationScoreCache
from src.automation.engine import RecommendationNotFound, compute_automation_score_details


@pytest.fixture
def cache():
    return AutomationScoreCache(enabled=True)


@pytest.fixture
def details(sample_modules, scoring_config):
    return compute_automation_score_details(sample_modules, config=scoring_config)


class TestAutomationScoreCache:

    def test_get_or_compute_computes_once(self, cache, details):
        calls = []

        def compute():
            calls.append(1)
            return details

        assert cache.get_or_compute(1, compute) is details
        assert cache.get_or_compute(1, compute) is details
        assert len(calls) == 1
        assert cache.stats()["hits"] == 1
        assert cache.stats()["misses"] == 1

    def test_entries_are_per_entity(self, cache, details, scoring_config):
        other = compute_automation_score_details([], config=scoring_config)
        cache.set(1, details)
        cache.set(2, other)
        assert cache.get(1) is details
        assert cache.get(2) is other

    def test_invalidate(self, cache, details):
        cache.set(1, details)
        assert cache.invalidate(1) is True
        assert cache.get(1) is None
        assert cache.invalidate(1) is False

    def test_invalidate_leaves_other_entities(self, cache, details):
        cache.set(1, details)
        cache.set(2, details)
        cache.invalidate(1)
        assert cache.get(2) is details

    def test_disabled_cache_never_stores(self, details):
        cache = AutomationScoreCache(enabled=False)
        cache.set(1, details)
        assert cache.get(1) is None
        assert cache.stats()["entries"] == 0

    def test_update_cached_recommendation(self, cache, details):
        cache.set(1, details)
        rec = cache.update_recommendation(1, "sales-rec-1", {"implemented": True})
        assert rec.implemented is True
        assert cache.get(1).recommendations[0].implemented is True

    def test_update_uses_passed_details_when_not_cached(self, details):
        cache = AutomationScoreCache(enabled=False)
        rec = cache.update_recommendation(1, "sales-rec-2", {"inProgress": True}, details=details)
        assert rec.in_progress is True

    def test_update_without_any_result(self, cache):
        with pytest.raises(RecommendationNotFound):
            cache.update_recommendation(1, "sales-rec-1", {"implemented": True})

    def test_concurrent_updates_leave_consistent_state(self, cache, details):
        cache.set(1, details)
        errors = []

        def worker(flag):
            try:
                for _ in range(50):
                    cache.update_recommendation(1, "sales-rec-1", {flag: True})
            except Exception as e:
                errors.append(e)

        threads = [
            threading.Thread(target=worker, args=(flag,))
            for flag in ("implemented", "inProgress", "implemented", "inProgress")
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        for rec in cache.get(1).iter_recommendation_copies("sales-rec-1"):
            assert not (rec.implemented and rec.in_progress)

    def test_clear(self, cache, details):
        cache.set(1, details)
        cache.clear()
        assert cache.stats() == {"enabled": True, "entries": 0, "hits": 0, "misses": 0, "hit_rate": 0.0}

    def test_set_discards_result_read_before_invalidation(self, cache, details):
        version = cache.version(1)
        cache.invalidate(1)
        assert cache.set(1, details, version=version) is details
        assert cache.get(1) is None

        cache.set(1, details, version=cache.version(1))
        assert cache.get(1) is details

    def test_invalidate_all_discards_pending_results(self, cache, details):
        cache.set(1, details)
        version = cache.version(2)
        cache.get(1)

        assert cache.invalidate_all() == 1
        cache.set(2, details, version=version)
        assert cache.stats()["entries"] == 0
        assert cache.stats()["hits"] == 1
