"""Cache key derivation for membership views.

Every membership relation (user -> favorited property, for instance) is cached
under three views that describe the same facts:

* ``ids``  - ordered list of target ids for a scope
* ``is``   - a single boolean for one (scope, target) pair
* ``mine`` - the joined list with denormalised target columns

Keys are plain tuples so prefix invalidation is a slice comparison.
"""

from typing import NamedTuple, Optional, Tuple

QueryKey = Tuple[str, ...]


class ToggleKeys(NamedTuple):
    ids: QueryKey
    is_member: QueryKey
    joined: QueryKey


def _clean(value: Optional[str]) -> str:
    return str(value if value is not None else "").strip()


class MembershipKeys:
    def __init__(self, entity: str):
        self.entity = entity

    def all(self) -> QueryKey:
        return (self.entity,)

    def ids(self, scope_id: str) -> QueryKey:
        return (self.entity, "ids", scope_id)

    def is_member(self, scope_id: str, target_id: str) -> QueryKey:
        return (self.entity, "is", scope_id, target_id)

    def joined(self, scope_id: str) -> QueryKey:
        return (self.entity, "mine", scope_id)

    def keys_for_toggle(self, scope_id: str, target_id: str) -> Optional[ToggleKeys]:
        """Keys touched together by one toggle, or ``None`` when not applicable."""
        scope = _clean(scope_id)
        target = _clean(target_id)
        if not scope or not target:
            return None
        return ToggleKeys(
            ids=self.ids(scope),
            is_member=self.is_member(scope, target),
            joined=self.joined(scope),
        )


def keys_for_toggle(entity: str, scope_id: str, target_id: str) -> Optional[ToggleKeys]:
    return MembershipKeys(entity).keys_for_toggle(scope_id, target_id)


favorite_keys = MembershipKeys("favorites")
