from sqlalchemy import Column, Integer, ForeignKey, Text, Boolean, Index
from sqlalchemy.orm import relationship
from .base import BaseModel

class Message(BaseModel):
    __tablename__ = "messages"
    
    chat_id = Column(Integer, ForeignKey("chats.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    text = Column(Text, nullable=True)
    reply_to_id = Column(Integer, ForeignKey("messages.id"), nullable=True)
    is_edited = Column(Boolean, default=False, nullable=False)
    # Soft delete: the row and its text stay, responses hide the text
    is_deleted = Column(Boolean, default=False, nullable=False)
    
    chat = relationship("Chat", back_populates="messages")
    sender = relationship("User", foreign_keys=[sender_id], back_populates="sent_messages")
    reply_to = relationship("Message", remote_side="Message.id")

    __table_args__ = (
        Index("ix_messages_chat_created", "chat_id", "created_at", "id"),
    )
