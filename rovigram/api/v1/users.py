from typing import List
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from rovigram.database import get_db
from rovigram.repositories.user_repository import UserRepository
from rovigram.schemas.user import AuthResponse, UserProfile, UserPublic, UserSearchResult, UserUpdate
from rovigram.auth import SessionUser, get_current_user
from rovigram.api.v1.auth import start_session

router = APIRouter()

@router.get("/search", response_model=List[UserSearchResult])
async def search_users(
    q: str = Query("", max_length=100, description="Part of a username or display name"),
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Up to 20 users matching ``q``, never including the caller."""
    return await UserRepository(db).search(current_user.id, q)

@router.get("/me", response_model=UserProfile)
async def get_current_user_profile(
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    return await UserRepository(db).get_existing(current_user.id)

@router.put("/me", response_model=AuthResponse)
async def update_current_user(
    user_data: UserUpdate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Update the profile and reissue the session with the new claims."""
    user = await UserRepository(db).update_profile(current_user.id, user_data)
    return start_session(response, user)

@router.get("/{user_id}", response_model=UserPublic)
async def get_user_by_id(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    return await UserRepository(db).get_existing(user_id)
