from dataclasses import replace
from typing import List
import logging

from semsar.config import Settings, settings as default_settings
from semsar.core.optimistic import MembershipChange, OptimisticMembership, favorites_table
from semsar.core.query_cache import QueryCache
from semsar.database.gateway import SupabaseGateway
from semsar.modules.favorites.schemas import FavoritePropertyRow

logger = logging.getLogger(__name__)

PROPERTY_COLUMNS = (
    "id,title,description,price,currency,city,address,"
    "bedrooms,bathrooms,area_sqm,property_type,status,cover_image,created_at"
)


class FavoritesService:
    def __init__(self, gateway: SupabaseGateway, cache: QueryCache, settings: Settings = default_settings):
        self.gateway = gateway
        self.cache = cache
        self.settings = settings
        self.table = replace(favorites_table, table=settings.favorites_table)
        self.keys = self.table.keys
        self.membership = OptimisticMembership(cache, gateway, self.table)

    async def favorite_ids(self, user_id: str) -> List[str]:
        """Property ids the user has favorited (lightweight, used for heart icons)"""
        if not user_id:
            return []

        scope_col, target_col = self.table.scope_column, self.table.target_column

        async def fetch() -> List[str]:
            rows = await self.gateway.select(
                self.table.table,
                columns=target_col,
                filters={scope_col: user_id},
            )
            return [str(r[target_col]) for r in rows]

        return await self.cache.fetch(
            self.keys.ids(user_id),
            fetch,
            stale_seconds=self.settings.favorites_ids_stale_seconds,
            retry=1,
        )

    async def is_favorite(self, user_id: str, property_id: str) -> bool:
        """Single-item lookup used by the property detail screen"""
        pid = str(property_id or "").strip()
        if not user_id or not pid:
            return False

        scope_col, target_col = self.table.scope_column, self.table.target_column

        async def fetch() -> bool:
            row = await self.gateway.select(
                self.table.table,
                columns=f"{scope_col},{target_col}",
                filters={scope_col: user_id, target_col: pid},
                maybe_single=True,
            )
            return bool(row)

        return await self.cache.fetch(
            self.keys.is_member(user_id, pid),
            fetch,
            stale_seconds=self.settings.favorites_is_stale_seconds,
            retry=1,
        )

    async def my_favorites(self, user_id: str) -> List[FavoritePropertyRow]:
        """Favorites joined with their property, newest first"""
        if not user_id:
            return []

        scope_col, target_col = self.table.scope_column, self.table.target_column

        async def fetch() -> List[FavoritePropertyRow]:
            rows = await self.gateway.select(
                self.table.table,
                columns=(
                    f"{scope_col}, {target_col}, created_at, "
                    f"property:{self.settings.properties_table}({PROPERTY_COLUMNS})"
                ),
                filters={scope_col: user_id},
                order_by="created_at",
                descending=True,
            )
            favorites = []
            for r in rows:
                prop = r.get("property")
                # Property deleted or hidden by RLS
                if not prop or not prop.get("id"):
                    continue
                favorites.append(FavoritePropertyRow(
                    user_id=str(r[scope_col]),
                    property_id=str(r[target_col]),
                    created_at=str(r.get("created_at") or ""),
                    property=prop,
                ))
            return favorites

        return await self.cache.fetch(
            self.keys.joined(user_id),
            fetch,
            stale_seconds=self.settings.favorites_mine_stale_seconds,
            retry=2,
        )

    async def toggle(self, user_id: str, property_id: str, is_favorite: bool) -> MembershipChange:
        change = await self.membership.set_membership(user_id, property_id, is_favorite)
        logger.info(f"User {user_id} set favorite {change.target_id} -> {change.desired_is_member}")
        return change
