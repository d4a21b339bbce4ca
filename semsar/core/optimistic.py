"""Optimistic membership toggles (favorite / unfavorite and friends).

A toggle walks through a fixed sequence of states::

    IDLE -> OPTIMISTIC_APPLIED -> REMOTE_PENDING -> CONFIRMED
                                                 -> ROLLED_BACK

The id list and the single boolean are rewritten in one synchronous block
before the Supabase write is awaited, so any reader running on the event loop
sees either both old values or both new ones. A failed write puts the target
back the way the snapshot had it (leaving other targets' pending edits in the
id list alone) and then raises ``RemoteWriteFailed``; either way the affected
views are invalidated afterwards so the next read comes from Supabase.

Two toggles racing on the same (scope, target) are not serialised. The second
one snapshots the first one's optimistic state, so rolling back the first can
restore a value the server never held. Reconciliation re-reads the views right
after, which bounds how long that drift is visible.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from semsar.core.exceptions import (
    InvalidTarget,
    NotAuthenticated,
    RemoteError,
    RemoteWriteFailed,
)
from semsar.core.query_cache import QueryCache
from semsar.core.query_keys import MembershipKeys, QueryKey, ToggleKeys, favorite_keys
from semsar.core.reconciliation import Reconciler

logger = logging.getLogger(__name__)

_MISSING = object()


class MembershipGateway(Protocol):
    async def upsert(
        self, table: str, row: Dict[str, Any], on_conflict: str = "", ignore_duplicates: bool = False
    ) -> None: ...

    async def delete(self, table: str, filters: Dict[str, str]) -> None: ...


class MutationState(str, Enum):
    IDLE = "idle"
    OPTIMISTIC_APPLIED = "optimistic_applied"
    REMOTE_PENDING = "remote_pending"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class MembershipTable:
    table: str
    scope_column: str
    target_column: str
    keys: MembershipKeys

    @property
    def on_conflict(self) -> str:
        return f"{self.scope_column},{self.target_column}"


@dataclass(frozen=True)
class MembershipChange:
    target_id: str
    desired_is_member: bool


favorites_table = MembershipTable(
    table="favorites",
    scope_column="user_id",
    target_column="property_id",
    keys=favorite_keys,
)


def _clean_id(value: Any) -> str:
    return str(value if value is not None else "").strip()


def toggled_ids(current: Optional[List[Any]], target_id: str, is_member: bool) -> List[str]:
    """New id list with ``target_id`` added at the end or removed; order otherwise kept."""
    ids = list(dict.fromkeys(str(i) for i in (current or [])))
    if is_member:
        if target_id not in ids:
            ids.append(target_id)
        return ids
    return [i for i in ids if i != target_id]


class OptimisticMembership:
    def __init__(
        self,
        cache: QueryCache,
        gateway: MembershipGateway,
        table: MembershipTable = favorites_table,
        reconciler: Optional[Reconciler] = None,
    ):
        self.cache = cache
        self.gateway = gateway
        self.table = table
        self.reconciler = reconciler or Reconciler(cache)

    async def set_membership(
        self, scope_id: str, target_id: str, desired_is_member: bool
    ) -> MembershipChange:
        scope = _clean_id(scope_id)
        if not scope:
            raise NotAuthenticated()
        target = _clean_id(target_id)
        if not target:
            raise InvalidTarget(f"{self.table.target_column} is required")
        desired = bool(desired_is_member)

        keys = self.table.keys.keys_for_toggle(scope, target)
        snapshot = self._apply_optimistic(keys, target, desired)
        state = MutationState.OPTIMISTIC_APPLIED
        logger.debug(f"{self.table.table} {scope}/{target} -> {desired}: {state.value}")

        try:
            state = MutationState.REMOTE_PENDING
            await self._write(scope, target, desired)
            state = MutationState.CONFIRMED
        except Exception as e:
            self._restore(keys, target, snapshot)
            state = MutationState.ROLLED_BACK
            error = e if isinstance(e, RemoteError) else RemoteError(str(e) or None)
            logger.warning(
                f"Rolled back {self.table.table} toggle {scope}/{target} -> {desired}: {error.message}"
            )
            raise RemoteWriteFailed(error) from e
        finally:
            self.reconciler.reconcile(keys)
            logger.debug(f"{self.table.table} {scope}/{target} -> {desired}: {state.value}")

        return MembershipChange(target_id=target, desired_is_member=desired)

    def _apply_optimistic(
        self, keys: ToggleKeys, target_id: str, desired: bool
    ) -> Dict[QueryKey, Any]:
        # No awaits in here: both views change within one loop turn.
        self.cache.cancel_in_flight(keys.ids)
        self.cache.cancel_in_flight(keys.is_member)

        snapshot = {}
        for key in (keys.ids, keys.is_member):
            snapshot[key] = self.cache.get(key) if self.cache.has(key) else _MISSING

        current = snapshot[keys.ids]
        self.cache.set(
            keys.ids, toggled_ids(None if current is _MISSING else current, target_id, desired)
        )
        self.cache.set(keys.is_member, desired)
        return snapshot

    def _restore(self, keys: ToggleKeys, target_id: str, snapshot: Dict[QueryKey, Any]) -> None:
        # Only this target is undone; toggles on other targets may still be pending.
        before = snapshot[keys.ids]
        before_ids = [] if before is _MISSING else [str(i) for i in before]
        ids = toggled_ids(self.cache.get(keys.ids), target_id, False)
        if target_id in before_ids:
            ids.insert(min(before_ids.index(target_id), len(ids)), target_id)
        if before is _MISSING and not ids:
            self.cache.remove(keys.ids)
        else:
            self.cache.set(keys.ids, ids)

        was = snapshot[keys.is_member]
        if was is _MISSING:
            self.cache.remove(keys.is_member)
        else:
            self.cache.set(keys.is_member, was)

    async def _write(self, scope_id: str, target_id: str, desired: bool) -> None:
        if desired:
            await self.gateway.upsert(
                self.table.table,
                {self.table.scope_column: scope_id, self.table.target_column: target_id},
                on_conflict=self.table.on_conflict,
                ignore_duplicates=True,
            )
        else:
            await self.gateway.delete(
                self.table.table,
                {self.table.scope_column: scope_id, self.table.target_column: target_id},
            )
