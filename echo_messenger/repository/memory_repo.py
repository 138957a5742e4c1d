import itertools
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from echo_messenger.core import config
from echo_messenger.core.errors import Conflict, NotFound
from echo_messenger.models.chat_models import (
    ConversationRecord,
    ConversationSummary,
    MemberInfo,
    MessageRecord,
    UserRecord,
    member_key,
)
from .base import ChatRepository

TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryRepository(ChatRepository):
    """
    Process-local repository for development and tests.

    A single lock serialises every operation, which gives each write the same
    all-or-nothing behaviour the Postgres functions provide.
    """

    def __init__(self, clock=utcnow):
        self._clock = clock
        self._lock = threading.RLock()
        self._users: Dict[str, UserRecord] = {}
        self._conversations: Dict[str, dict] = {}
        self._messages: Dict[str, List[MessageRecord]] = {}
        self._message_ids = itertools.count(1)

        self._conversations[config.GLOBAL_CONVERSATION_ID] = {
            "id": config.GLOBAL_CONVERSATION_ID,
            "creator_id": None,
            "member_ids": set(),
            "member_key": None,
            "updated_at": self._clock(),
        }
        self._messages[config.GLOBAL_CONVERSATION_ID] = []

    def _record(self, row: dict) -> ConversationRecord:
        return ConversationRecord(
            id=row["id"],
            creator_id=row["creator_id"],
            member_ids=sorted(row["member_ids"]),
            updated_at=row["updated_at"],
        )

    def _row(self, conversation_id: str) -> dict:
        row = self._conversations.get(conversation_id)
        if row is None:
            raise NotFound("Conversation not found.")
        return row

    def _member_info(self, user_id: str) -> MemberInfo:
        user = self._users[user_id]
        return MemberInfo(username=user.username, avatar=user.avatar)

    def _rekey(self, row: dict):
        if row["id"] != config.GLOBAL_CONVERSATION_ID:
            row["member_key"] = member_key(row["member_ids"])

    # users

    def get_user(self, user_id):
        with self._lock:
            return self._users.get(str(user_id))

    def find_users_by_lowercase(self, names):
        wanted = {name.lower() for name in names}
        with self._lock:
            return [u for u in self._users.values() if u.username_lowercase in wanted]

    def create_profile(self, user_id, username, avatar=None):
        user_id = str(user_id)
        with self._lock:
            lowered = username.lower()
            taken = any(u.username_lowercase == lowered for u in self._users.values())
            if taken or user_id in self._users:
                raise Conflict("Username already exists.")

            user = UserRecord(
                id=user_id,
                username=username,
                username_lowercase=lowered,
                avatar=avatar,
            )
            self._users[user_id] = user
            self._conversations[config.GLOBAL_CONVERSATION_ID]["member_ids"].add(user_id)
            return user

    def update_avatar(self, user_id, avatar):
        with self._lock:
            user = self._users.get(str(user_id))
            if user is None:
                raise NotFound("User not found.")
            self._users[user.id] = user.model_copy(update={"avatar": avatar})

    # conversations

    def get_conversation(self, conversation_id):
        with self._lock:
            row = self._conversations.get(conversation_id)
            return self._record(row) if row else None

    def find_conversation_by_member_key(self, key):
        with self._lock:
            matches = [r for r in self._conversations.values() if r["member_key"] == key]
            if not matches:
                return None
            # leave/add can re-key a room onto an existing set; prefer the most active
            row = max(matches, key=lambda r: (r["updated_at"], r["id"]))
            return self._record(row)

    def create_conversation(self, creator_id, member_ids):
        member_ids = {str(member_id) for member_id in member_ids}
        with self._lock:
            conversation_id = str(uuid.uuid4())
            row = {
                "id": conversation_id,
                "creator_id": str(creator_id),
                "member_ids": member_ids,
                "member_key": member_key(member_ids),
                "updated_at": self._clock(),
            }
            self._conversations[conversation_id] = row
            self._messages[conversation_id] = []
            return self._record(row)

    def add_member(self, conversation_id, user_id):
        with self._lock:
            row = self._row(conversation_id)
            if str(user_id) in row["member_ids"]:
                raise Conflict("User is already in the conversation.")
            row["member_ids"].add(str(user_id))
            self._rekey(row)

    def leave_conversation(self, conversation_id, user_id):
        with self._lock:
            row = self._row(conversation_id)
            if len(row["member_ids"]) <= 1:
                del self._conversations[conversation_id]
                del self._messages[conversation_id]
                return True

            row["member_ids"].discard(str(user_id))
            self._rekey(row)
            return False

    def list_members(self, conversation_id):
        with self._lock:
            row = self._row(conversation_id)
            members = [self._member_info(user_id) for user_id in row["member_ids"]]
        return sorted(members, key=lambda member: member.username)

    def list_user_conversations(self, user_id):
        with self._lock:
            rows = [
                row
                for row in self._conversations.values()
                if str(user_id) in row["member_ids"]
                and row["id"] != config.GLOBAL_CONVERSATION_ID
            ]
            summaries = [
                ConversationSummary(
                    id=row["id"],
                    updated_at=row["updated_at"],
                    members=sorted(
                        (self._member_info(uid) for uid in row["member_ids"]),
                        key=lambda member: member.username,
                    ),
                )
                for row in rows
            ]
        return sorted(summaries, key=lambda summary: summary.updated_at, reverse=True)

    def count_updated_conversations(self, user_id, since):
        with self._lock:
            return sum(
                1
                for row in self._conversations.values()
                if str(user_id) in row["member_ids"] and row["updated_at"] > since
            )

    # messages

    def append_message(self, conversation_id, author_id, content):
        with self._lock:
            row = self._row(conversation_id)
            created_at = max(self._clock(), row["updated_at"] + TICK)
            author = self._users.get(str(author_id))

            message = MessageRecord(
                id=next(self._message_ids),
                conversation_id=conversation_id,
                author_id=str(author_id),
                content=content,
                created_at=created_at,
                author_username=author.username if author else None,
                author_avatar=author.avatar if author else None,
            )
            self._messages[conversation_id].append(message)
            row["updated_at"] = created_at
            return message

    def list_messages(self, conversation_id, since=None):
        with self._lock:
            self._row(conversation_id)
            messages = [
                self._with_author(message)
                for message in self._messages[conversation_id]
                if since is None or message.created_at > since
            ]
        return sorted(messages, key=lambda message: (message.created_at, message.id))

    def _with_author(self, message: MessageRecord) -> MessageRecord:
        author = self._users.get(message.author_id)
        if author is None:
            return message
        return message.model_copy(
            update={"author_username": author.username, "author_avatar": author.avatar}
        )
