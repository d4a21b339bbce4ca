from fastapi import APIRouter, Depends
from semsar.core.dependencies import get_query_cache, get_scope_id
from semsar.core.query_cache import QueryCache
from semsar.database.gateway import SupabaseGateway, get_gateway
from semsar.modules.favorites.schemas import (
    FavoriteIdsResponse, FavoritePropertyRow, IsFavoriteResponse,
    MembershipChangeResponse, ToggleFavoriteRequest
)
from semsar.modules.favorites.service import FavoritesService
from typing import List

router = APIRouter(prefix="/favorites", tags=["favorites"])


def get_favorites_service(
    gateway: SupabaseGateway = Depends(get_gateway),
    cache: QueryCache = Depends(get_query_cache)
) -> FavoritesService:
    return FavoritesService(gateway, cache)


@router.get("", response_model=List[FavoritePropertyRow])
async def list_my_favorites(
    user_id: str = Depends(get_scope_id),
    service: FavoritesService = Depends(get_favorites_service)
):
    """Favorited properties with their details, newest first"""
    return await service.my_favorites(user_id)


@router.get("/ids", response_model=FavoriteIdsResponse)
async def list_favorite_ids(
    user_id: str = Depends(get_scope_id),
    service: FavoritesService = Depends(get_favorites_service)
):
    """Ids of favorited properties"""
    return FavoriteIdsResponse(property_ids=await service.favorite_ids(user_id))


@router.get("/{property_id}", response_model=IsFavoriteResponse)
async def get_is_favorite(
    property_id: str,
    user_id: str = Depends(get_scope_id),
    service: FavoritesService = Depends(get_favorites_service)
):
    """Whether the current user has favorited a property"""
    is_favorite = await service.is_favorite(user_id, property_id)
    return IsFavoriteResponse(property_id=property_id, is_favorite=is_favorite)


@router.put("/{property_id}", response_model=MembershipChangeResponse)
async def toggle_favorite(
    property_id: str,
    payload: ToggleFavoriteRequest,
    user_id: str = Depends(get_scope_id),
    service: FavoritesService = Depends(get_favorites_service)
):
    """Favorite (next=true) or unfavorite (next=false) a property"""
    change = await service.toggle(user_id, property_id, payload.next)
    return MembershipChangeResponse(property_id=change.target_id, next=change.desired_is_member)


@router.delete("/{property_id}", response_model=MembershipChangeResponse)
async def remove_favorite(
    property_id: str,
    user_id: str = Depends(get_scope_id),
    service: FavoritesService = Depends(get_favorites_service)
):
    """Unfavorite a property"""
    change = await service.toggle(user_id, property_id, False)
    return MembershipChangeResponse(property_id=change.target_id, next=change.desired_is_member)
