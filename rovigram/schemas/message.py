from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class MessageCreate(BaseModel):
    chat_id: int
    text: str
    reply_to_id: Optional[int] = None

class MessageUpdate(BaseModel):
    text: str

class MessageResponse(BaseModel):
    id: int
    chat_id: int
    sender_id: int
    text: Optional[str] = None
    reply_to_id: Optional[int] = None
    is_edited: bool
    is_deleted: bool
    created_at: datetime
    sender_username: str
    sender_display_name: str
    sender_avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_message(cls, message) -> "MessageResponse":
        """Build the response; the text of a deleted message is never exposed."""
        return cls(
            id=message.id,
            chat_id=message.chat_id,
            sender_id=message.sender_id,
            text=None if message.is_deleted else message.text,
            reply_to_id=message.reply_to_id,
            is_edited=message.is_edited,
            is_deleted=message.is_deleted,
            created_at=message.created_at,
            sender_username=message.sender.username,
            sender_display_name=message.sender.display_name,
            sender_avatar=message.sender.avatar_url,
        )
