import sys
import time
import unittest

from school_api.cache import CacheManager, MemoryCacheBackend, RedisCacheBackend, cache, cache_key
from school_api.metrics import cache_event_counts, flush_cache_metrics
from school_api.services.result_service import invalidate_exam_results


class CacheTests(unittest.TestCase):
    def setUp(self):
        for exam_id in (1, 2, 7, 8):
            invalidate_exam_results(exam_id)
        flush_cache_metrics()

    def test_cache_hit_miss(self):
        key = cache_key('exam_results', 1)
        self.assertIsNone(cache.get_cached(key))
        cache.set_cached(key, [{'student_id': 1, 'rank': 1}], ttl=5)
        self.assertEqual(cache.get_cached(key), [{'student_id': 1, 'rank': 1}])

    def test_exam_results_invalidation_targets_one_exam(self):
        cache.set_cached(cache_key('exam_results', 1), {'a': 1}, ttl=5)
        cache.set_cached(cache_key('exam_results', 2), {'b': 2}, ttl=5)
        invalidate_exam_results(1)
        self.assertIsNone(cache.get_cached(cache_key('exam_results', 1)))
        self.assertEqual(cache.get_cached(cache_key('exam_results', 2)), {'b': 2})

    def test_single_key_invalidation_leaves_siblings(self):
        cache.set_cached(cache_key('exam_results', 7), {'a': 1}, ttl=5)
        cache.set_cached(cache_key('exam_results', 8), {'b': 2}, ttl=5)
        cache.invalidate(cache_key('exam_results', 7))
        self.assertIsNone(cache.get_cached(cache_key('exam_results', 7)))
        self.assertEqual(cache.get_cached(cache_key('exam_results', 8)), {'b': 2})

    def test_key_without_identifier_is_prefix(self):
        self.assertEqual(cache_key('exam_results'), 'exam_results')
        self.assertEqual(cache_key('exam_results', 3), 'exam_results:3')

    def test_events_are_counted(self):
        manager = CacheManager(backend=MemoryCacheBackend())
        manager.get_cached('exam_results:42')
        manager.set_cached('exam_results:42', [], ttl=5)
        manager.get_cached('exam_results:42')
        manager.invalidate('exam_results:42')

        counts = cache_event_counts()
        self.assertGreaterEqual(counts.get('cache_miss', 0), 1)
        self.assertGreaterEqual(counts.get('cache_hit', 0), 1)
        self.assertGreaterEqual(counts.get('cache_invalidate', 0), 1)


class RedisBackendTests(unittest.TestCase):
    def setUp(self):
        self._orig_redis = sys.modules.get('redis')

        class FakeRedisClient:
            def __init__(self):
                self._store = {}

            def setex(self, key, ttl, value):
                self._store[key] = (time.time() + ttl, value)

            def get(self, key):
                item = self._store.get(key)
                if not item:
                    return None
                expires_at, value = item
                if time.time() >= expires_at:
                    self._store.pop(key, None)
                    return None
                return value

            def delete(self, *keys):
                for key in keys:
                    self._store.pop(key, None)

        class FakeRedisModule:
            class Redis:
                @staticmethod
                def from_url(url, decode_responses=True):
                    return FakeRedisClient()

        sys.modules['redis'] = FakeRedisModule()

    def tearDown(self):
        if self._orig_redis is None:
            sys.modules.pop('redis', None)
        else:
            sys.modules['redis'] = self._orig_redis

    def test_redis_backend_roundtrip(self):
        manager = CacheManager(backend=RedisCacheBackend('redis://localhost:6379/0'))
        manager.set_cached('exam_results:5', [{'rank': 1, 'percentage': 91.5}], ttl=5)
        self.assertEqual(manager.get_cached('exam_results:5'), [{'rank': 1, 'percentage': 91.5}])

    def test_redis_backend_invalidation(self):
        manager = CacheManager(backend=RedisCacheBackend('redis://localhost:6379/0'))
        manager.set_cached('exam_results:1', {'a': 1}, ttl=5)
        manager.set_cached('exam_results:2', {'b': 2}, ttl=5)
        manager.invalidate('exam_results:1')
        self.assertIsNone(manager.get_cached('exam_results:1'))
        self.assertEqual(manager.get_cached('exam_results:2'), {'b': 2})


if __name__ == '__main__':
    unittest.main()
