import logging
from typing import Iterable

from semsar.core.exceptions import ReconciliationSchedulingFailed
from semsar.core.query_cache import QueryCache
from semsar.core.query_keys import QueryKey

logger = logging.getLogger(__name__)


class Reconciler:
    """Marks views stale after a mutation settles so the next read goes to Supabase."""

    def __init__(self, cache: QueryCache):
        self.cache = cache

    def reconcile(self, keys: Iterable[QueryKey]) -> None:
        seen = set()
        for key in keys:
            if key in seen:
                continue
            seen.add(key)
            try:
                self.cache.invalidate(key)
            except Exception as e:
                failure = ReconciliationSchedulingFailed(f"Could not invalidate {key}: {e}")
                logger.warning(failure.message)
