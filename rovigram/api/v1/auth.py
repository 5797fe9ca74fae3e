from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from rovigram.database import get_db
from rovigram.repositories.user_repository import UserRepository
from rovigram.schemas.user import AuthResponse, UserCreate, UserLogin, UserProfile
from rovigram.auth import SessionUser, create_access_token, get_current_user, get_optional_user
from rovigram.config import settings
from rovigram.models.user import User

router = APIRouter()


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def start_session(response: Response, user: User) -> dict:
    token = create_access_token(user)
    set_auth_cookie(response, token)
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": user,
    }


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user_data: UserCreate, response: Response, db: AsyncSession = Depends(get_db)):
    user_repo = UserRepository(db)
    user = await user_repo.create(user_data)
    return start_session(response, user)

@router.post("/login", response_model=AuthResponse)
async def login_user(user_data: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    user = await UserRepository(db).authenticate(user_data.login, user_data.password)
    return start_session(response, user)

@router.post("/token", response_model=AuthResponse)
async def login_user_form(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    user = await UserRepository(db).authenticate(form_data.username, form_data.password)
    return start_session(response, user)

@router.post("/logout")
async def logout_user(
    response: Response,
    current_user: Optional[SessionUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if current_user is not None:
        await UserRepository(db).set_offline(current_user.id)
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return {"success": True}

@router.get("/me", response_model=UserProfile)
async def get_current_user_info(
    current_user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserRepository(db).get_existing(current_user.id)
