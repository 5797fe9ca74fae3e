#!/usr/bin/env python3
"""Log in as a seeded user and poll a chat the way the web client does."""

import sys
import time

import requests

BASE_URL = "http://localhost:8000/api/v1"
MESSAGE_POLL_SECONDS = 3
CHAT_LIST_POLL_SECONDS = 5

def login(session: requests.Session, login_name: str, password: str) -> dict:
    response = session.post(f"{BASE_URL}/auth/login", json={"login": login_name, "password": password})
    if response.status_code != 200:
        print(f"Login failed: {response.json().get('error')}")
        sys.exit(1)
    # The session keeps the auth-token cookie for the following requests
    return response.json()["user"]

def poll(session: requests.Session, rounds: int = 4):
    chats = session.get(f"{BASE_URL}/chats/").json()
    if not chats:
        print("No chats to poll")
        return
    chat = chats[0]
    print(f"Polling chat {chat['id']} ({chat['name']})")

    sent = session.post(f"{BASE_URL}/messages/", json={"chat_id": chat["id"], "text": "Test message from Python client"})
    print(f"Sent: {sent.json()}")

    last_seen_id = None
    next_chat_list = time.monotonic() + CHAT_LIST_POLL_SECONDS
    for _ in range(rounds):
        messages = session.get(f"{BASE_URL}/messages/history/{chat['id']}").json()
        for message in messages:
            if last_seen_id is None or message["id"] > last_seen_id:
                text = "message removed" if message["is_deleted"] else message["text"]
                print(f"[{message['created_at']}] {message['sender_display_name']}: {text}")
        if messages:
            last_seen_id = messages[-1]["id"]

        if time.monotonic() >= next_chat_list:
            print(f"{len(session.get(f'{BASE_URL}/chats/').json())} chats")
            next_chat_list = time.monotonic() + CHAT_LIST_POLL_SECONDS
        time.sleep(MESSAGE_POLL_SECONDS)

    session.post(f"{BASE_URL}/auth/logout")

if __name__ == "__main__":
    with requests.Session() as session:
        user = login(session, "alice", "password123")
        print(f"Logged in as {user['display_name']}")
        poll(session)
