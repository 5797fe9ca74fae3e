import logging
from typing import Optional, List

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rovigram.exceptions import ForbiddenError, NotFoundError, ValidationError
from rovigram.models.message import Message
from rovigram.schemas.message import MessageCreate
from rovigram.repositories.chat_repository import ChatRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def clean_text(text: Optional[str]) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Message cannot be empty")
    return text


class MessageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.chats = ChatRepository(db)

    async def create(self, message_data: MessageCreate, sender_id: int) -> Message:
        text = clean_text(message_data.text)
        await self.chats.require_member(message_data.chat_id, sender_id)

        if message_data.reply_to_id is not None:
            reply_to = await self.db.get(Message, message_data.reply_to_id)
            if reply_to is None or reply_to.chat_id != message_data.chat_id:
                raise ValidationError("Replied message not found in this chat")

        message = Message(
            chat_id=message_data.chat_id,
            sender_id=sender_id,
            text=text,
            reply_to_id=message_data.reply_to_id,
        )
        self.db.add(message)
        await self.db.commit()
        return await self.get_by_id(message.id)

    async def get_by_id(self, message_id: int) -> Optional[Message]:
        result = await self.db.execute(
            select(Message).options(
                selectinload(Message.sender)
            ).where(Message.id == message_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_owned(self, message_id: int, editor_id: int) -> Message:
        """Load a message that ``editor_id`` is allowed to change."""
        message = await self.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        if message.sender_id != editor_id:
            logger.info("User %s refused change of message %s", editor_id, message_id)
            raise ForbiddenError("You can only change your own messages")
        return message

    async def edit(self, message_id: int, editor_id: int, text: str) -> Message:
        message = await self.get_owned(message_id, editor_id)
        if message.is_deleted:
            raise ValidationError("Deleted messages cannot be edited")
        message.text = clean_text(text)
        message.is_edited = True
        await self.db.commit()
        return await self.get_by_id(message_id)

    async def soft_delete(self, message_id: int, editor_id: int) -> Message:
        message = await self.get_owned(message_id, editor_id)
        message.is_deleted = True
        await self.db.commit()
        return message

    async def get_chat_messages(
        self,
        chat_id: int,
        before_id: Optional[int] = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> List[Message]:
        """Newest ``limit`` messages older than ``before_id``, oldest first."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        conditions = [Message.chat_id == chat_id]

        if before_id is not None:
            cursor = await self.db.get(Message, before_id)
            if cursor is None or cursor.chat_id != chat_id:
                raise ValidationError("Unknown history cursor")
            conditions.append(
                or_(
                    Message.created_at < cursor.created_at,
                    and_(Message.created_at == cursor.created_at, Message.id < cursor.id),
                )
            )

        result = await self.db.execute(
            select(Message).options(
                selectinload(Message.sender)
            ).where(and_(*conditions))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        messages = list(result.scalars().all())
        messages.reverse()
        return messages

    async def list_for_chat(
        self,
        chat_id: int,
        user_id: int,
        before_id: Optional[int] = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> List[Message]:
        await self.chats.require_member(chat_id, user_id)
        return await self.get_chat_messages(chat_id, before_id=before_id, limit=limit)
