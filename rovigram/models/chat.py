from sqlalchemy import Column, String, Enum, Integer, ForeignKey, Text
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from .base import BaseModel

class ChatType(PyEnum):
    PRIVATE = "private"
    GROUP = "group"
    CHANNEL = "channel"


def private_pair_key(user_id1: int, user_id2: int) -> str:
    """Key of the unordered member pair of a private chat."""
    low, high = sorted((user_id1, user_id2))
    return f"{low}:{high}"


class Chat(BaseModel):
    __tablename__ = "chats"
    
    name = Column(String(100), nullable=True)  # null for private chats
    description = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    chat_type = Column(
        Enum(ChatType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ChatType.PRIVATE,
    )
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # One private chat per user pair; NULL for groups and channels
    private_key = Column(String(50), unique=True, nullable=True)
    
    creator = relationship("User", foreign_keys=[creator_id], back_populates="created_chats")
    messages = relationship("Message", back_populates="chat", cascade="all, delete-orphan")
    members = relationship("ChatMember", back_populates="chat", cascade="all, delete-orphan")
