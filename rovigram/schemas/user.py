from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class UserCreate(BaseModel):
    phone: str
    username: str
    display_name: str
    password: str

class UserLogin(BaseModel):
    login: str
    password: str

class UserUpdate(BaseModel):
    display_name: str
    username: Optional[str] = None
    bio: Optional[str] = None

class UserPublic(BaseModel):
    id: int
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    bio: str = ""
    is_online: bool
    last_seen: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class UserSearchResult(BaseModel):
    id: int
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    is_online: bool

    model_config = ConfigDict(from_attributes=True)

class UserProfile(UserPublic):
    phone: str
    created_at: datetime

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int

class AuthResponse(Token):
    user: UserProfile
