"""Translation of supabase-py calls and errors by the gateway."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from semsar.core.exceptions import RemoteError
from semsar.database.gateway import SupabaseGateway, to_remote_error


@pytest.fixture
def supabase() -> MagicMock:
    return MagicMock()


@pytest.mark.asyncio
async def test_upsert_passes_conflict_options(supabase: MagicMock) -> None:
    gateway = SupabaseGateway(supabase)

    await gateway.upsert(
        "favorites",
        {"user_id": "u1", "property_id": "p1"},
        on_conflict="user_id,property_id",
        ignore_duplicates=True,
    )

    supabase.table.assert_called_with("favorites")
    supabase.table.return_value.upsert.assert_called_once_with(
        {"user_id": "u1", "property_id": "p1"},
        on_conflict="user_id,property_id",
        ignore_duplicates=True,
    )
    supabase.table.return_value.upsert.return_value.execute.assert_called_once()


@pytest.mark.asyncio
async def test_delete_applies_every_filter(supabase: MagicMock) -> None:
    gateway = SupabaseGateway(supabase)
    query = supabase.table.return_value.delete.return_value
    query.eq.return_value = query

    await gateway.delete("favorites", {"user_id": "u1", "property_id": "p1"})

    assert [c.args for c in query.eq.call_args_list] == [
        ("user_id", "u1"),
        ("property_id", "p1"),
    ]
    query.execute.assert_called_once()


@pytest.mark.asyncio
async def test_delete_without_filters_is_refused(supabase: MagicMock) -> None:
    with pytest.raises(RemoteError):
        await SupabaseGateway(supabase).delete("favorites", {})
    supabase.table.assert_not_called()


@pytest.mark.asyncio
async def test_select_orders_and_returns_rows(supabase: MagicMock) -> None:
    query = supabase.table.return_value.select.return_value
    query.eq.return_value = query
    query.order.return_value = query
    query.execute.return_value = MagicMock(data=[{"property_id": "p1"}])

    rows = await SupabaseGateway(supabase).select(
        "favorites",
        columns="property_id",
        filters={"user_id": "u1"},
        order_by="created_at",
        descending=True,
    )

    assert rows == [{"property_id": "p1"}]
    query.order.assert_called_once_with("created_at", desc=True)


@pytest.mark.asyncio
async def test_maybe_single_without_match_returns_none(supabase: MagicMock) -> None:
    query = supabase.table.return_value.select.return_value
    query.eq.return_value = query
    query.maybe_single.return_value.execute.return_value = None

    row = await SupabaseGateway(supabase).select(
        "favorites", filters={"user_id": "u1"}, maybe_single=True
    )

    assert row is None


@pytest.mark.asyncio
async def test_api_errors_keep_postgrest_fields(supabase: MagicMock) -> None:
    supabase.table.return_value.upsert.return_value.execute.side_effect = APIError(
        {
            "message": "new row violates row-level security policy",
            "code": "42501",
            "hint": None,
            "details": None,
        }
    )

    with pytest.raises(RemoteError) as exc_info:
        await SupabaseGateway(supabase).upsert("favorites", {"user_id": "u1"})

    assert exc_info.value.message == "new row violates row-level security policy"
    assert exc_info.value.code == "42501"
    assert isinstance(exc_info.value.__cause__, APIError)


def test_network_and_unknown_errors_are_translated() -> None:
    network = to_remote_error(httpx.ConnectError("connection refused"))
    assert network.code == "network_error"
    assert "connection refused" in network.message

    assert to_remote_error(RuntimeError()).message == "Supabase error"
