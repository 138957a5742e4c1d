import logging

from supabase import Client, PostgrestAPIError

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

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
NO_DATA_FOUND = "P0002"

USER_COLUMNS = "id, username, username_lowercase, avatar"
MESSAGE_COLUMNS = (
    "id, conversation_id, author_id, content, created_at, "
    "author:profiles(username, avatar)"
)


def _conversation(row: dict) -> ConversationRecord:
    return ConversationRecord(
        id=row["id"],
        creator_id=row.get("creator_id"),
        member_ids=sorted(m["user_id"] for m in row.get("conversation_members") or []),
        updated_at=row["updated_at"],
    )


def _message(row: dict) -> MessageRecord:
    author = row.get("author") or {}
    return MessageRecord(
        id=row["id"],
        conversation_id=row["conversation_id"],
        author_id=row["author_id"],
        content=row["content"],
        created_at=row["created_at"],
        author_username=author.get("username"),
        author_avatar=author.get("avatar"),
    )


def _members(rows) -> list:
    members = [
        MemberInfo(**row["profiles"]) for row in rows or [] if row.get("profiles")
    ]
    return sorted(members, key=lambda member: member.username)


def _translate(error: PostgrestAPIError, conflict_message: str):
    """Map Postgres error codes onto the domain taxonomy; re-raise anything else."""
    if error.code == UNIQUE_VIOLATION:
        raise Conflict(conflict_message) from error
    if error.code == NO_DATA_FOUND:
        raise NotFound("Conversation not found.") from error

    logger.error(f"postgrest_error code={error.code} message={error.message}")
    raise error


class SupabaseRepository(ChatRepository):
    def __init__(self, client: Client):
        self.client = client

    # users

    def get_user(self, user_id):
        response = (
            self.client.table("profiles")
            .select(USER_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        return UserRecord(**response.data[0]) if response.data else None

    def find_users_by_lowercase(self, names):
        lowered = sorted({name.lower() for name in names})
        if not lowered:
            return []

        response = (
            self.client.table("profiles")
            .select(USER_COLUMNS)
            .in_("username_lowercase", lowered)
            .execute()
        )
        return [UserRecord(**row) for row in response.data or []]

    def create_profile(self, user_id, username, avatar=None):
        try:
            response = self.client.rpc(
                "create_profile",
                {"p_id": str(user_id), "p_username": username, "p_avatar": avatar},
            ).execute()
        except PostgrestAPIError as error:
            _translate(error, "Username already exists.")

        return UserRecord(**response.data)

    def update_avatar(self, user_id, avatar):
        self.client.table("profiles").update({"avatar": avatar}).eq(
            "id", str(user_id)
        ).execute()

    # conversations

    def get_conversation(self, conversation_id):
        response = (
            self.client.table("conversations")
            .select("id, creator_id, updated_at, conversation_members(user_id)")
            .eq("id", conversation_id)
            .limit(1)
            .execute()
        )
        return _conversation(response.data[0]) if response.data else None

    def find_conversation_by_member_key(self, key):
        response = (
            self.client.table("conversations")
            .select("id, creator_id, updated_at, conversation_members(user_id)")
            .eq("member_key", key)
            .order("updated_at", desc=True)
            .order("id", desc=True)
            .limit(1)
            .execute()
        )
        return _conversation(response.data[0]) if response.data else None

    def create_conversation(self, creator_id, member_ids):
        member_ids = sorted({str(member_id) for member_id in member_ids})
        response = self.client.rpc(
            "create_conversation",
            {
                "p_creator_id": str(creator_id),
                "p_member_ids": member_ids,
                "p_member_key": member_key(member_ids),
            },
        ).execute()

        row = response.data
        return ConversationRecord(
            id=row["id"],
            creator_id=row["creator_id"],
            member_ids=member_ids,
            updated_at=row["updated_at"],
        )

    def add_member(self, conversation_id, user_id):
        try:
            self.client.rpc(
                "add_conversation_member",
                {"p_conversation_id": conversation_id, "p_user_id": str(user_id)},
            ).execute()
        except PostgrestAPIError as error:
            _translate(error, "User is already in the conversation.")

    def leave_conversation(self, conversation_id, user_id):
        try:
            response = self.client.rpc(
                "leave_conversation",
                {"p_conversation_id": conversation_id, "p_user_id": str(user_id)},
            ).execute()
        except PostgrestAPIError as error:
            _translate(error, "Conversation changed concurrently.")

        return bool(response.data)

    def list_members(self, conversation_id):
        response = (
            self.client.table("conversation_members")
            .select("profiles(username, avatar)")
            .eq("conversation_id", conversation_id)
            .execute()
        )
        return _members(response.data)

    def list_user_conversations(self, user_id):
        response = (
            self.client.table("conversation_members")
            .select(
                """
                conversations (
                    id,
                    updated_at,
                    conversation_members ( profiles ( username, avatar ) )
                )
                """
            )
            .eq("user_id", str(user_id))
            .neq("conversation_id", config.GLOBAL_CONVERSATION_ID)
            .execute()
        )

        summaries = [
            ConversationSummary(
                id=row["conversations"]["id"],
                updated_at=row["conversations"]["updated_at"],
                members=_members(row["conversations"]["conversation_members"]),
            )
            for row in response.data or []
            if row.get("conversations")
        ]
        return sorted(summaries, key=lambda summary: summary.updated_at, reverse=True)

    def count_updated_conversations(self, user_id, since):
        response = (
            self.client.table("conversation_members")
            .select("conversation_id, conversations!inner(updated_at)", count="exact")
            .eq("user_id", str(user_id))
            .gt("conversations.updated_at", since.isoformat())
            .execute()
        )
        return response.count or 0

    # messages

    def append_message(self, conversation_id, author_id, content):
        try:
            response = self.client.rpc(
                "post_message",
                {
                    "p_conversation_id": conversation_id,
                    "p_author_id": str(author_id),
                    "p_content": content,
                },
            ).execute()
        except PostgrestAPIError as error:
            _translate(error, "Message could not be stored.")

        author = self.get_user(author_id)
        message = _message(response.data)
        if author:
            message.author_username = author.username
            message.author_avatar = author.avatar
        return message

    def list_messages(self, conversation_id, since=None):
        query = (
            self.client.table("messages")
            .select(MESSAGE_COLUMNS)
            .eq("conversation_id", conversation_id)
        )
        if since is not None:
            query = query.gt("created_at", since.isoformat())

        response = query.order("created_at").order("id").execute()
        return [_message(row) for row in response.data or []]
