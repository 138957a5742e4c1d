"""
Conversation identity and membership.

Conversations addressed by a set of usernames are deduplicated: creating a
conversation whose member set exactly equals an existing one returns the
existing conversation. The lookup goes through the ``member_key`` fingerprint
so it is an exact match rather than a scan. Two concurrent creates with the
same members can still both miss each other and produce two rooms; that race
is accepted.
"""

import logging
from typing import Iterable, List, Tuple

from echo_messenger.core import config
from echo_messenger.core.errors import Conflict, Forbidden, InvalidRequest, NotFound
from echo_messenger.models.chat_models import ConversationRecord, member_key
from echo_messenger.repository.base import ChatRepository

logger = logging.getLogger(__name__)


class ConversationDirectory:
    def __init__(self, repository: ChatRepository):
        self.repository = repository

    def resolve_usernames(self, usernames: Iterable[str]) -> List[str]:
        """Map usernames to user ids case-insensitively, NotFound lists the misses."""
        wanted = {}
        for name in usernames:
            wanted.setdefault(name.strip().lower(), name.strip())

        found = self.repository.find_users_by_lowercase(wanted.keys())
        found_lowercase = {user.username_lowercase for user in found}

        not_found = [name for key, name in wanted.items() if key not in found_lowercase]
        if not_found:
            raise NotFound("One or more users were not found.", not_found=not_found)

        return [user.id for user in found]

    def create(
        self, creator_id: str, target_usernames: Iterable[str]
    ) -> Tuple[ConversationRecord, bool]:
        """Find or create the conversation for creator + targets; returns (conversation, created)."""
        target_usernames = [name for name in target_usernames if name and name.strip()]
        if not target_usernames:
            raise InvalidRequest("Usernames are required to start a conversation.")

        if self.repository.get_user(creator_id) is None:
            raise NotFound("Profile not found.")

        member_ids = {str(creator_id), *self.resolve_usernames(target_usernames)}
        if len(member_ids) < 2:
            raise InvalidRequest("You cannot create a conversation with only yourself.")

        existing = self.repository.find_conversation_by_member_key(member_key(member_ids))
        if existing is not None:
            logger.info(f"conversation_deduplicated id={existing.id}")
            return existing, False

        conversation = self.repository.create_conversation(creator_id, member_ids)
        logger.info(
            f"conversation_created id={conversation.id} members={len(member_ids)}"
        )
        return conversation, True

    def check_membership(self, conversation_id: str, user_id: str) -> ConversationRecord:
        conversation = self.repository.get_conversation(conversation_id)
        if conversation is None:
            raise NotFound("Conversation not found.")

        if not conversation.has_member(user_id):
            raise Forbidden("You are not authorized to access this conversation.")

        return conversation

    def add_member(self, conversation: ConversationRecord, username: str) -> str:
        """Add a user to an already authorized conversation; returns the new member's id."""
        users = self.repository.find_users_by_lowercase([username])
        if not users:
            raise NotFound("User not found.", not_found=[username])

        user_id = users[0].id
        if conversation.has_member(user_id):
            raise Conflict("User is already in the conversation.")

        self.repository.add_member(conversation.id, user_id)
        logger.info(f"conversation_member_added id={conversation.id} user={user_id}")
        return user_id

    def leave(self, conversation: ConversationRecord, user_id: str) -> bool:
        """Remove the user; returns True when the conversation was deleted."""
        if conversation.id == config.GLOBAL_CONVERSATION_ID:
            raise Forbidden("You cannot leave the global chat.")

        deleted = self.repository.leave_conversation(conversation.id, user_id)
        if deleted:
            logger.info(f"conversation_deleted id={conversation.id}")
        else:
            logger.info(f"conversation_member_left id={conversation.id} user={user_id}")
        return deleted
