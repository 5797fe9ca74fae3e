from sqlalchemy import Column, Integer, ForeignKey, DateTime, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from .base import BaseModel, utcnow

class MemberRole(PyEnum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class ChatMember(BaseModel):
    __tablename__ = "chat_members"
    
    chat_id = Column(Integer, ForeignKey("chats.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(
        Enum(MemberRole, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MemberRole.MEMBER,
    )
    joined_at = Column(DateTime, default=utcnow, nullable=False)
    
    chat = relationship("Chat", back_populates="members")
    user = relationship("User", back_populates="chat_memberships")
    
    __table_args__ = (
        UniqueConstraint("chat_id", "user_id", name="unique_chat_member"),
    )

    @property
    def can_manage(self) -> bool:
        return self.role in (MemberRole.OWNER, MemberRole.ADMIN)
