import logging
from typing import Optional, List, Dict

from sqlalchemy import select, and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rovigram.exceptions import DuplicateError, ForbiddenError, NotFoundError, ValidationError
from rovigram.models.chat import Chat, ChatType, private_pair_key
from rovigram.models.chat_member import ChatMember, MemberRole
from rovigram.models.message import Message
from rovigram.models.user import User
from rovigram.schemas.chat import ChatMemberResponse, ChatSummary
from rovigram.schemas.message import MessageResponse

logger = logging.getLogger(__name__)

MAX_CHAT_NAME_LENGTH = 100


class ChatRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_or_create_private_chat(self, requester_id: int, target_id: int) -> Chat:
        """Return the private chat of the pair, creating it on first request.

        The pair key is unique in the store, so a concurrent request that
        inserted the same pair first makes this insert fail; the winner's
        chat is returned instead.
        """
        if requester_id == target_id:
            raise ValidationError("Cannot start a private chat with yourself")
        target = await self.db.get(User, target_id)
        if target is None:
            raise NotFoundError("User not found")

        existing_chat = await self.get_private_chat_between_users(requester_id, target_id)
        if existing_chat:
            return existing_chat

        chat = Chat(
            chat_type=ChatType.PRIVATE,
            creator_id=requester_id,
            private_key=private_pair_key(requester_id, target_id),
        )
        self.db.add(chat)
        try:
            await self.db.flush()
            self.db.add_all([
                ChatMember(chat_id=chat.id, user_id=requester_id, role=MemberRole.MEMBER),
                ChatMember(chat_id=chat.id, user_id=target_id, role=MemberRole.MEMBER),
            ])
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("Private chat %s already created concurrently", private_pair_key(requester_id, target_id))
            existing_chat = await self.get_private_chat_between_users(requester_id, target_id)
            if existing_chat is None:
                raise
            return existing_chat

        await self.db.refresh(chat)
        logger.info("Created private chat %s between users %s and %s", chat.id, requester_id, target_id)
        return chat

    async def create_group_chat(self, creator_id: int, name: str, member_ids: List[int]) -> Chat:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required")
        if len(name) > MAX_CHAT_NAME_LENGTH:
            raise ValidationError(f"Group name must be at most {MAX_CHAT_NAME_LENGTH} characters")

        # Keep order, drop duplicates and the creator
        unique_ids = [uid for uid in dict.fromkeys(member_ids) if uid != creator_id]
        if unique_ids:
            result = await self.db.execute(select(User.id).where(User.id.in_(unique_ids)))
            found = set(result.scalars().all())
            missing = [uid for uid in unique_ids if uid not in found]
            if missing:
                raise NotFoundError(f"User with ID {missing[0]} not found")

        chat = Chat(
            name=name,
            chat_type=ChatType.GROUP,
            creator_id=creator_id
        )
        self.db.add(chat)
        await self.db.flush()

        members = [ChatMember(chat_id=chat.id, user_id=creator_id, role=MemberRole.OWNER)]
        members.extend(
            ChatMember(chat_id=chat.id, user_id=uid, role=MemberRole.MEMBER) for uid in unique_ids
        )
        self.db.add_all(members)

        await self.db.commit()
        await self.db.refresh(chat)
        logger.info("Created group chat %s with %d members", chat.id, len(members))
        return chat

    async def get_by_id(self, chat_id: int) -> Optional[Chat]:
        result = await self.db.execute(
            select(Chat).options(
                selectinload(Chat.members).selectinload(ChatMember.user)
            ).where(Chat.id == chat_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_user_chats(self, user_id: int) -> List[Chat]:
        result = await self.db.execute(
            select(Chat).join(ChatMember).options(
                selectinload(Chat.members).selectinload(ChatMember.user)
            ).where(ChatMember.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_private_chat_between_users(self, user_id1: int, user_id2: int) -> Optional[Chat]:
        result = await self.db.execute(
            select(Chat).where(
                and_(
                    Chat.chat_type == ChatType.PRIVATE,
                    Chat.private_key == private_pair_key(user_id1, user_id2),
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_membership(self, chat_id: int, user_id: int) -> Optional[ChatMember]:
        result = await self.db.execute(
            select(ChatMember).where(
                and_(ChatMember.chat_id == chat_id, ChatMember.user_id == user_id)
            )
        )
        return result.scalar_one_or_none()

    async def is_member(self, chat_id: int, user_id: int) -> bool:
        return await self.get_membership(chat_id, user_id) is not None

    async def require_member(self, chat_id: int, user_id: int) -> ChatMember:
        membership = await self.get_membership(chat_id, user_id)
        if membership is None:
            if await self.db.get(Chat, chat_id) is None:
                raise NotFoundError("Chat not found")
            raise ForbiddenError("No access to this chat")
        return membership

    async def add_member(self, chat_id: int, actor_id: int, user_id: int) -> ChatMember:
        """Add ``user_id`` to a group chat on behalf of an owner or admin."""
        chat = await self.db.get(Chat, chat_id)
        if chat is None:
            raise NotFoundError("Chat not found")
        if chat.chat_type != ChatType.GROUP:
            raise ValidationError("Members can only be added to group chats")

        actor = await self.get_membership(chat_id, actor_id)
        if actor is None or not actor.can_manage:
            raise ForbiddenError("Only owners and admins can add members")

        if await self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")
        if await self.is_member(chat_id, user_id):
            raise DuplicateError("User is already a member of this chat")

        member = ChatMember(chat_id=chat_id, user_id=user_id, role=MemberRole.MEMBER)
        self.db.add(member)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateError("User is already a member of this chat")
        await self.db.refresh(member)
        return member

    async def get_last_messages(self, chat_ids: List[int]) -> Dict[int, Message]:
        """Most recent non-deleted message of each chat."""
        if not chat_ids:
            return {}
        ranked = (
            select(
                Message.id.label("id"),
                func.row_number().over(
                    partition_by=Message.chat_id,
                    order_by=(Message.created_at.desc(), Message.id.desc()),
                ).label("recency"),
            )
            .where(and_(Message.chat_id.in_(chat_ids), Message.is_deleted.is_(False)))
            .subquery()
        )
        result = await self.db.execute(
            select(Message)
            .join(ranked, Message.id == ranked.c.id)
            .options(selectinload(Message.sender))
            .where(ranked.c.recency == 1)
        )
        return {message.chat_id: message for message in result.scalars().all()}

    async def list_chats_for_user(self, user_id: int) -> List[ChatSummary]:
        """Chats of ``user_id``, most recently active first."""
        chats = await self.get_user_chats(user_id)
        last_messages = await self.get_last_messages([chat.id for chat in chats])
        summaries = [self.build_summary(chat, user_id, last_messages.get(chat.id)) for chat in chats]
        summaries.sort(key=lambda summary: (summary.activity_at, summary.id), reverse=True)
        return summaries

    async def get_chat(self, chat_id: int, user_id: int) -> ChatSummary:
        await self.require_member(chat_id, user_id)
        chat = await self.get_by_id(chat_id)
        last_messages = await self.get_last_messages([chat_id])
        return self.build_summary(chat, user_id, last_messages.get(chat_id))

    @staticmethod
    def build_summary(chat: Chat, viewer_id: int, last_message: Optional[Message]) -> ChatSummary:
        members = [
            ChatMemberResponse(
                user_id=member.user_id,
                role=member.role,
                username=member.user.username,
                display_name=member.user.display_name,
                avatar_url=member.user.avatar_url,
                is_online=member.user.is_online,
                last_seen=member.user.last_seen,
                joined_at=member.joined_at,
            )
            for member in chat.members
        ]

        name, avatar_url, other_user_online = chat.name, chat.avatar_url, False
        if chat.chat_type == ChatType.PRIVATE:
            # Private chats are shown as the counterpart, never the viewer
            other = next((m for m in members if m.user_id != viewer_id), None)
            if other is not None:
                name, avatar_url, other_user_online = other.display_name, other.avatar_url, other.is_online

        return ChatSummary(
            id=chat.id,
            chat_type=chat.chat_type,
            name=name,
            description=chat.description,
            avatar_url=avatar_url,
            creator_id=chat.creator_id,
            created_at=chat.created_at,
            members=members,
            last_message=MessageResponse.from_message(last_message) if last_message else None,
            other_user_online=other_user_online,
        )
