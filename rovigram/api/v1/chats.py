from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rovigram.database import get_db
from rovigram.repositories.chat_repository import ChatRepository
from rovigram.schemas.chat import ChatCreated, ChatSummary, CreateGroupChat, CreatePrivateChat
from rovigram.auth import SessionUser, get_current_user

router = APIRouter()

@router.get("/", response_model=List[ChatSummary])
async def get_user_chats(
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Chats of the current user, most recently active first"""
    return await ChatRepository(db).list_chats_for_user(current_user.id)

@router.post("/private", response_model=ChatCreated)
async def create_private_chat(
    chat_data: CreatePrivateChat,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Open the private chat with a user, reusing the existing one"""
    chat = await ChatRepository(db).find_or_create_private_chat(current_user.id, chat_data.recipient_id)
    return {"chat_id": chat.id}

@router.post("/group", response_model=ChatCreated, status_code=status.HTTP_201_CREATED)
async def create_group_chat(
    chat_data: CreateGroupChat,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    chat = await ChatRepository(db).create_group_chat(
        current_user.id,
        chat_data.name,
        chat_data.member_ids
    )
    return {"chat_id": chat.id}

@router.get("/{chat_id}", response_model=ChatSummary)
async def get_chat(
    chat_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    return await ChatRepository(db).get_chat(chat_id, current_user.id)

@router.post("/{chat_id}/members/{user_id}", status_code=status.HTTP_201_CREATED)
async def add_member_to_chat(
    chat_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Add a member to a group chat (owners and admins only)"""
    member = await ChatRepository(db).add_member(chat_id, current_user.id, user_id)
    return {"chat_id": member.chat_id, "user_id": member.user_id, "role": member.role.value}
