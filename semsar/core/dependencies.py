"""
Core dependencies: token -> user resolution and per-app shared objects
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from semsar.core.query_cache import QueryCache
from semsar.database.supabase_client import SupabaseClient, get_supabase
from semsar.modules.auth.service import AuthService
from supabase import Client
from typing import Iterator
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_scope_id(user_data: dict = Depends(get_current_user_id)) -> str:
    """Id every favorites query and mutation is scoped to ("" when the token has none)"""
    return str(user_data.get("id") or "")


def get_query_cache(request: Request) -> QueryCache:
    """The application's query cache, created at startup in main.py"""
    return request.app.state.query_cache


def get_user_supabase(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> Iterator[Client]:
    """Supabase client acting as the caller, so table writes pass RLS.

    Closed once the request is done with it.
    """
    client = SupabaseClient.get_user_client(credentials.credentials)
    try:
        yield client
    finally:
        SupabaseClient.close_user_client(client)
