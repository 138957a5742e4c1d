"""
Storage interface for users, conversations and messages.

Implementations must make every write method a single all-or-nothing unit of
work. ``append_message`` in particular must persist the message and advance
the owning conversation's ``updated_at`` to the message's ``created_at``
together, and ``created_at`` must be strictly greater than the conversation's
previous ``updated_at``; pollers rely on both to resume without gaps.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from echo_messenger.models.chat_models import (
    ConversationRecord,
    ConversationSummary,
    MemberInfo,
    MessageRecord,
    UserRecord,
)


class ChatRepository(ABC):
    # users

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def find_users_by_lowercase(self, names: Iterable[str]) -> List[UserRecord]: ...

    @abstractmethod
    def create_profile(
        self, user_id: str, username: str, avatar: Optional[str] = None
    ) -> UserRecord:
        """Create the profile and join it to the global room; Conflict on a taken name."""

    @abstractmethod
    def update_avatar(self, user_id: str, avatar: str) -> None: ...

    # conversations

    @abstractmethod
    def get_conversation(self, conversation_id: str) -> Optional[ConversationRecord]: ...

    @abstractmethod
    def find_conversation_by_member_key(
        self, key: str
    ) -> Optional[ConversationRecord]: ...

    @abstractmethod
    def create_conversation(
        self, creator_id: str, member_ids: Iterable[str]
    ) -> ConversationRecord: ...

    @abstractmethod
    def add_member(self, conversation_id: str, user_id: str) -> None: ...

    @abstractmethod
    def leave_conversation(self, conversation_id: str, user_id: str) -> bool:
        """Remove the member, deleting the conversation if they were the last one."""

    @abstractmethod
    def list_members(self, conversation_id: str) -> List[MemberInfo]: ...

    @abstractmethod
    def list_user_conversations(self, user_id: str) -> List[ConversationSummary]:
        """Non-global conversations of the user, most recently active first."""

    @abstractmethod
    def count_updated_conversations(self, user_id: str, since: datetime) -> int: ...

    # messages

    @abstractmethod
    def append_message(
        self, conversation_id: str, author_id: str, content: str
    ) -> MessageRecord: ...

    @abstractmethod
    def list_messages(
        self, conversation_id: str, since: Optional[datetime] = None
    ) -> List[MessageRecord]:
        """Messages ordered by (created_at, id), optionally only created_at > since."""
