from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime

from rovigram.models.chat import ChatType
from rovigram.models.chat_member import MemberRole
from rovigram.schemas.message import MessageResponse

class CreatePrivateChat(BaseModel):
    recipient_id: int

class CreateGroupChat(BaseModel):
    name: str
    member_ids: List[int] = []

class ChatCreated(BaseModel):
    chat_id: int

class ChatMemberResponse(BaseModel):
    user_id: int
    role: MemberRole
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    is_online: bool
    last_seen: Optional[datetime] = None
    joined_at: datetime

class ChatSummary(BaseModel):
    id: int
    chat_type: ChatType
    name: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    creator_id: int
    created_at: datetime
    members: List[ChatMemberResponse]
    last_message: Optional[MessageResponse] = None
    other_user_online: bool = False

    model_config = ConfigDict(from_attributes=True)

    @property
    def activity_at(self) -> datetime:
        if self.last_message is not None:
            return self.last_message.created_at
        return self.created_at
