import logging

from echo_messenger.models.chat_models import ConversationRecord, MessageRecord
from echo_messenger.moderation.policy import moderate_message
from echo_messenger.repository.base import ChatRepository

logger = logging.getLogger(__name__)


class MessageStore:
    """
    Appends moderated messages to conversations.

    Callers must have run ``ConversationDirectory.check_membership`` first and
    pass the conversation it returned.
    """

    def __init__(self, repository: ChatRepository):
        self.repository = repository

    def post(
        self, conversation: ConversationRecord, author_id: str, raw_text: str
    ) -> MessageRecord:
        content = moderate_message(raw_text)

        message = self.repository.append_message(conversation.id, author_id, content)
        logger.info(
            f"message_posted conversation={conversation.id} id={message.id} "
            f"censored={content != raw_text}"
        )
        return message

    def history(self, conversation: ConversationRecord) -> list:
        return self.repository.list_messages(conversation.id)
