"""
Async facade over the Supabase table API.

supabase-py's ``Client`` is synchronous, so each request runs in a worker
thread; the coroutine awaiting it is the only place a caller suspends.
Every SDK failure comes back as ``RemoteError`` with the PostgREST
message/code/hint/details preserved.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from fastapi import Depends
from postgrest.exceptions import APIError
from supabase import Client

from semsar.core.exceptions import RemoteError
from semsar.core.dependencies import get_user_supabase

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def to_remote_error(exc: Exception) -> RemoteError:
    if isinstance(exc, RemoteError):
        return exc
    if isinstance(exc, APIError):
        return RemoteError(
            message=getattr(exc, "message", None) or str(exc),
            code=getattr(exc, "code", None),
            hint=getattr(exc, "hint", None),
            details=getattr(exc, "details", None),
        )
    if isinstance(exc, httpx.HTTPError):
        return RemoteError(message=f"Network error: {exc}", code="network_error")
    return RemoteError(message=str(exc) or None)


class SupabaseGateway:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    async def _run(self, description: str, builder) -> Any:
        try:
            return await asyncio.to_thread(lambda: builder().execute())
        except Exception as e:
            error = to_remote_error(e)
            logger.error(f"Supabase {description} failed: {error.message} (code={error.code})")
            raise error from e

    async def upsert(
        self,
        table: str,
        row: Row,
        on_conflict: str = "",
        ignore_duplicates: bool = False,
    ) -> None:
        await self._run(
            f"upsert on {table}",
            lambda: self.supabase.table(table).upsert(
                row, on_conflict=on_conflict, ignore_duplicates=ignore_duplicates
            ),
        )

    async def delete(self, table: str, filters: Dict[str, str]) -> None:
        if not filters:
            # An unfiltered delete would wipe the table (or be rejected by PostgREST).
            raise RemoteError(message=f"Refusing to delete from {table} without filters")

        def build():
            query = self.supabase.table(table).delete()
            for column, value in filters.items():
                query = query.eq(column, value)
            return query

        await self._run(f"delete on {table}", build)

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, str]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        maybe_single: bool = False,
    ) -> Union[List[Row], Optional[Row]]:
        def build():
            query = self.supabase.table(table).select(columns)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order_by:
                query = query.order(order_by, desc=descending)
            if maybe_single:
                query = query.maybe_single()
            return query

        result = await self._run(f"select on {table}", build)
        # maybe_single() returns no response object at all when nothing matched
        if result is None:
            return None if maybe_single else []
        if maybe_single:
            return result.data or None
        return result.data or []


def get_gateway(supabase: Client = Depends(get_user_supabase)) -> SupabaseGateway:
    return SupabaseGateway(supabase)
