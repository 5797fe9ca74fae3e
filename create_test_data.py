#!/usr/bin/env python3

import asyncio
import sys
import os

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from rovigram.database import create_tables, AsyncSessionLocal
from rovigram.exceptions import RovigramError
from rovigram.repositories.user_repository import UserRepository
from rovigram.repositories.chat_repository import ChatRepository
from rovigram.repositories.message_repository import MessageRepository
from rovigram.schemas.user import UserCreate
from rovigram.schemas.message import MessageCreate

PASSWORD = "password123"

async def create_test_users():
    async with AsyncSessionLocal() as db:
        user_repo = UserRepository(db)

        users_data = [
            {"username": "alice", "phone": "+10000000001", "display_name": "Alice"},
            {"username": "bob", "phone": "+10000000002", "display_name": "Bob"},
            {"username": "charlie", "phone": "+10000000003", "display_name": "Charlie"},
            {"username": "diana", "phone": "+10000000004", "display_name": "Diana"},
            {"username": "eve", "phone": "+10000000005", "display_name": "Eve"},
        ]

        created_users = []
        for user_data in users_data:
            existing_user = await user_repo.get_by_username(user_data["username"])
            if not existing_user:
                user = await user_repo.create(UserCreate(password=PASSWORD, **user_data))
                created_users.append(user)
                print(f"Created user: {user.username} (ID: {user.id})")
            else:
                created_users.append(existing_user)
                print(f"User {user_data['username']} exists (ID: {existing_user.id})")

        return created_users

async def create_test_chats(users):
    async with AsyncSessionLocal() as db:
        chat_repo = ChatRepository(db)

        private_chat = await chat_repo.find_or_create_private_chat(users[0].id, users[1].id)
        print(f"Private chat between {users[0].username} and {users[1].username} (ID: {private_chat.id})")

        group_chat = await chat_repo.create_group_chat(
            users[0].id,
            "Test Group",
            [users[1].id, users[2].id, users[3].id]
        )
        print(f"Created group chat '{group_chat.name}' (ID: {group_chat.id})")

        private_chat2 = await chat_repo.find_or_create_private_chat(users[2].id, users[3].id)
        print(f"Private chat between {users[2].username} and {users[3].username} (ID: {private_chat2.id})")

        return [private_chat, group_chat, private_chat2]

async def create_test_messages(users, chats):
    async with AsyncSessionLocal() as db:
        message_repo = MessageRepository(db)

        messages_data = [
            (0, 0, "Hey Bob! How's it going?"),
            (0, 1, "Hi Alice! All good, thanks!"),
            (0, 0, "Great! Ready to work on the project?"),
            (1, 0, "Welcome to our test group!"),
            (1, 1, "Thanks for the invitation!"),
            (1, 2, "Hey everyone! Glad to be here"),
            (1, 3, "Let's discuss the work plan"),
            (1, 0, "Great idea! Let's start with defining tasks"),
            (2, 2, "Diana, can we discuss project details?"),
            (2, 3, "Sure! I have a few ideas"),
        ]

        created_messages = []
        for chat_index, sender_index, text in messages_data:
            sender = users[sender_index]
            message = await message_repo.create(
                MessageCreate(chat_id=chats[chat_index].id, text=text),
                sender.id
            )
            created_messages.append(message)
            print(f"Message from {sender.username} in chat {message.chat_id}: '{text[:30]}...'")

        return created_messages

async def main():
    print("Creating test data for Rovigram...\n")

    try:
        print("1. Creating database tables...")
        await create_tables()
        print("Tables created\n")

        print("2. Creating test users...")
        users = await create_test_users()
        print(f"Created/found {len(users)} users\n")

        print("3. Creating test chats...")
        chats = await create_test_chats(users)
        print(f"Created {len(chats)} chats\n")

        print("4. Creating test messages...")
        messages = await create_test_messages(users, chats)
        print(f"Created {len(messages)} messages\n")
    except RovigramError as e:
        print(f"Error creating test data: {e.message}")
        sys.exit(1)

    print("Test data created successfully!")
    print("\nUsers:")
    for user in users:
        print(f"  - {user.username} (ID: {user.id}, phone {user.phone}) - password: {PASSWORD}")

    print("\nChats:")
    for chat in chats:
        name = chat.name if chat.name else f"Chat #{chat.id}"
        print(f"  - {chat.chat_type.value.title()} chat: {name} (ID: {chat.id})")

    print("\nUseful links:")
    print("  - API docs: http://localhost:8000/docs")
    print("  - ReDoc: http://localhost:8000/redoc")

if __name__ == "__main__":
    asyncio.run(main())
