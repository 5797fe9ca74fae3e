from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rovigram.database import get_db
from rovigram.repositories.message_repository import MessageRepository, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from rovigram.schemas.message import MessageCreate, MessageResponse, MessageUpdate
from rovigram.auth import SessionUser, get_current_user

router = APIRouter()

@router.get("/history/{chat_id}", response_model=List[MessageResponse])
async def get_chat_history(
    chat_id: int,
    before: Optional[int] = Query(None, description="Return messages older than this message id"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    messages = await MessageRepository(db).list_for_chat(chat_id, current_user.id, before_id=before, limit=limit)
    return [MessageResponse.from_message(msg) for msg in messages]

@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    message = await MessageRepository(db).create(message_data, current_user.id)
    return MessageResponse.from_message(message)

@router.put("/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: int,
    message_data: MessageUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Edit the text of one of the current user's messages"""
    message = await MessageRepository(db).edit(message_id, current_user.id, message_data.text)
    return MessageResponse.from_message(message)

@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    await MessageRepository(db).soft_delete(message_id, current_user.id)
    return {"success": True}
