"""Best-effort invalidation after a mutation settles."""

import logging
from unittest.mock import MagicMock, call

from semsar.core.query_cache import QueryCache
from semsar.core.reconciliation import Reconciler


def test_reconcile_invalidates_each_key_once():
    cache = MagicMock(spec=QueryCache)
    Reconciler(cache).reconcile([("a",), ("b",), ("a",)])

    assert cache.invalidate.call_args_list == [call(("a",)), call(("b",))]


def test_reconcile_logs_and_swallows_failures(caplog):
    cache = MagicMock(spec=QueryCache)
    cache.invalidate.side_effect = [RuntimeError("boom"), True]

    with caplog.at_level(logging.WARNING, logger="semsar.core.reconciliation"):
        Reconciler(cache).reconcile([("a",), ("b",)])

    assert cache.invalidate.call_count == 2
    assert "Could not invalidate ('a',)" in caplog.text
