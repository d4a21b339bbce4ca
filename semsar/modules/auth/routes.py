from fastapi import APIRouter, Depends
from semsar.modules.auth.schemas import CurrentUserResponse
from semsar.core.dependencies import get_current_user_id
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(current_user: Dict = Depends(get_current_user_id)):
    """Get the user the bearer token belongs to"""
    return current_user
