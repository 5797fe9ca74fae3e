from datetime import timedelta

import pytest
import pytest_asyncio

from rovigram.exceptions import ForbiddenError, NotFoundError, ValidationError
from rovigram.models.base import utcnow
from rovigram.models.message import Message
from rovigram.repositories.chat_repository import ChatRepository
from rovigram.repositories.message_repository import MessageRepository
from rovigram.schemas.message import MessageCreate, MessageResponse
from tests.conftest import register


@pytest_asyncio.fixture()
async def private_chat(db_session, alice, bob):
    return await ChatRepository(db_session).find_or_create_private_chat(alice.id, bob.id)


async def send(db_session, chat_id, sender_id, text, reply_to_id=None):
    return await MessageRepository(db_session).create(
        MessageCreate(chat_id=chat_id, text=text, reply_to_id=reply_to_id), sender_id
    )


class TestSend:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_blank_text_rejected(self, db_session, alice, private_chat, text):
        with pytest.raises(ValidationError, match="empty"):
            await send(db_session, private_chat.id, alice.id, text)

    @pytest.mark.asyncio
    async def test_text_is_trimmed(self, db_session, alice, private_chat):
        message = await send(db_session, private_chat.id, alice.id, "  hi  ")
        assert message.text == "hi"
        assert message.sender.username == "alice"
        assert message.is_edited is False
        assert message.is_deleted is False

    @pytest.mark.asyncio
    async def test_non_member_cannot_send(self, db_session, carol, private_chat):
        with pytest.raises(ForbiddenError):
            await send(db_session, private_chat.id, carol.id, "let me in")

    @pytest.mark.asyncio
    async def test_reply_in_same_chat(self, db_session, alice, bob, private_chat):
        original = await send(db_session, private_chat.id, alice.id, "question?")
        reply = await send(db_session, private_chat.id, bob.id, "answer", reply_to_id=original.id)
        assert reply.reply_to_id == original.id

    @pytest.mark.asyncio
    async def test_reply_across_chats_rejected(self, db_session, alice, bob, carol, private_chat):
        other_chat = await ChatRepository(db_session).find_or_create_private_chat(alice.id, carol.id)
        elsewhere = await send(db_session, other_chat.id, carol.id, "secret")
        with pytest.raises(ValidationError):
            await send(db_session, private_chat.id, bob.id, "quoting", reply_to_id=elsewhere.id)
        with pytest.raises(ValidationError):
            await send(db_session, private_chat.id, bob.id, "quoting", reply_to_id=424242)


class TestEditAndDelete:
    @pytest.mark.asyncio
    async def test_sender_can_edit(self, db_session, alice, private_chat):
        message = await send(db_session, private_chat.id, alice.id, "helo")
        edited = await MessageRepository(db_session).edit(message.id, alice.id, " hello ")
        assert edited.text == "hello"
        assert edited.is_edited is True

    @pytest.mark.asyncio
    async def test_other_user_cannot_edit(self, db_session, alice, bob, private_chat):
        repo = MessageRepository(db_session)
        message = await send(db_session, private_chat.id, alice.id, "mine")
        with pytest.raises(ForbiddenError):
            await repo.edit(message.id, bob.id, "hijacked")
        stored = await repo.get_by_id(message.id)
        assert stored.text == "mine"
        assert stored.is_edited is False

    @pytest.mark.asyncio
    async def test_edit_validation(self, db_session, alice, private_chat):
        repo = MessageRepository(db_session)
        message = await send(db_session, private_chat.id, alice.id, "mine")
        with pytest.raises(ValidationError):
            await repo.edit(message.id, alice.id, "   ")
        with pytest.raises(NotFoundError):
            await repo.edit(98765, alice.id, "text")
        await repo.soft_delete(message.id, alice.id)
        with pytest.raises(ValidationError):
            await repo.edit(message.id, alice.id, "revived")

    @pytest.mark.asyncio
    async def test_soft_delete_keeps_text_in_storage(self, db_session, alice, private_chat):
        repo = MessageRepository(db_session)
        message = await send(db_session, private_chat.id, alice.id, "oops")
        await repo.soft_delete(message.id, alice.id)

        [stored] = await repo.list_for_chat(private_chat.id, alice.id)
        assert stored.is_deleted is True
        assert stored.text == "oops"
        assert MessageResponse.from_message(stored).text is None

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, db_session, alice, bob, private_chat):
        repo = MessageRepository(db_session)
        message = await send(db_session, private_chat.id, alice.id, "mine")
        with pytest.raises(ForbiddenError):
            await repo.soft_delete(message.id, bob.id)
        assert (await repo.get_by_id(message.id)).is_deleted is False


class TestHistory:
    @pytest.mark.asyncio
    async def test_ascending_with_sender_identity(self, db_session, alice, bob, private_chat):
        now = utcnow()
        db_session.add_all([
            Message(chat_id=private_chat.id, sender_id=bob.id, text="third", created_at=now),
            Message(chat_id=private_chat.id, sender_id=alice.id, text="first", created_at=now - timedelta(minutes=2)),
            Message(chat_id=private_chat.id, sender_id=bob.id, text="second", created_at=now - timedelta(minutes=1)),
        ])
        await db_session.commit()

        messages = await MessageRepository(db_session).list_for_chat(private_chat.id, alice.id)
        assert [m.text for m in messages] == ["first", "second", "third"]
        assert [m.sender.display_name for m in messages] == ["Alice Liddell", "Bob Builder", "Bob Builder"]

    @pytest.mark.asyncio
    async def test_cursor_windows(self, db_session, alice, private_chat):
        now = utcnow()
        db_session.add_all([
            Message(chat_id=private_chat.id, sender_id=alice.id, text=f"m{i}", created_at=now + timedelta(seconds=i))
            for i in range(7)
        ])
        await db_session.commit()
        repo = MessageRepository(db_session)

        latest = await repo.list_for_chat(private_chat.id, alice.id, limit=3)
        assert [m.text for m in latest] == ["m4", "m5", "m6"]

        older = await repo.list_for_chat(private_chat.id, alice.id, before_id=latest[0].id, limit=3)
        assert [m.text for m in older] == ["m1", "m2", "m3"]

        oldest = await repo.list_for_chat(private_chat.id, alice.id, before_id=older[0].id, limit=3)
        assert [m.text for m in oldest] == ["m0"]

    @pytest.mark.asyncio
    async def test_non_member_cannot_read(self, db_session, carol, private_chat):
        with pytest.raises(ForbiddenError):
            await MessageRepository(db_session).list_for_chat(private_chat.id, carol.id)


@pytest.mark.asyncio
async def test_message_endpoints(client):
    alice = await register(client, "alice", "+1501", "Alice")
    bob = await register(client, "bob", "+1502", "Bob")
    chat = await client.post("/api/v1/chats/private", json={"recipient_id": bob["user"]["id"]}, headers=alice["headers"])
    chat_id = chat.json()["chat_id"]

    empty = await client.post("/api/v1/messages/", json={"chat_id": chat_id, "text": "   "}, headers=alice["headers"])
    assert empty.status_code == 400
    assert empty.json() == {"error": "Message cannot be empty"}

    sent = await client.post("/api/v1/messages/", json={"chat_id": chat_id, "text": "  hi bob  "}, headers=alice["headers"])
    assert sent.status_code == 201
    message = sent.json()
    assert message["text"] == "hi bob"
    assert message["sender_username"] == "alice"

    hijack = await client.put(f"/api/v1/messages/{message['id']}", json={"text": "hacked"}, headers=bob["headers"])
    assert hijack.status_code == 403
    assert "error" in hijack.json()

    edited = await client.put(f"/api/v1/messages/{message['id']}", json={"text": "hi Bob"}, headers=alice["headers"])
    assert edited.status_code == 200
    assert edited.json()["is_edited"] is True

    listing = await client.get("/api/v1/chats/", headers=bob["headers"])
    assert listing.json()[0]["last_message"]["text"] == "hi Bob"
    assert listing.json()[0]["name"] == "Alice"

    deleted = await client.delete(f"/api/v1/messages/{message['id']}", headers=alice["headers"])
    assert deleted.json() == {"success": True}

    history = await client.get(f"/api/v1/messages/history/{chat_id}", headers=bob["headers"])
    assert history.status_code == 200
    [shown] = history.json()
    assert shown["is_deleted"] is True
    assert shown["text"] is None

    listing = await client.get("/api/v1/chats/", headers=bob["headers"])
    assert listing.json()[0]["last_message"] is None


@pytest.mark.asyncio
async def test_history_limit_bounds(client):
    alice = await register(client, "alice", "+1501", "Alice")
    bob = await register(client, "bob", "+1502", "Bob")
    chat = await client.post("/api/v1/chats/private", json={"recipient_id": bob["user"]["id"]}, headers=alice["headers"])
    response = await client.get(
        f"/api/v1/messages/history/{chat.json()['chat_id']}", params={"limit": 0}, headers=alice["headers"]
    )
    assert response.status_code == 422
    assert "error" in response.json()
