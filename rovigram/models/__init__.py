from .base import Base
from .user import User
from .chat import Chat, ChatType
from .chat_member import ChatMember, MemberRole
from .message import Message

__all__ = [
    "Base",
    "User", 
    "Chat",
    "ChatType",
    "ChatMember",
    "MemberRole",
    "Message",
]
