"""Shared fixtures: a fresh query cache and fake gateway per test."""

from __future__ import annotations

import pytest

from semsar.core.optimistic import OptimisticMembership
from semsar.core.query_cache import QueryCache
from tests.fakes import FakeGateway


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def membership(cache: QueryCache, gateway: FakeGateway) -> OptimisticMembership:
    return OptimisticMembership(cache, gateway)
