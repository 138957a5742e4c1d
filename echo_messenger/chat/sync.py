"""
Polling queries answering "what changed since T".

Both bounds are exclusive: a client passes the ``created_at`` of the last
message (or the time of its last poll) and never sees that event again.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from echo_messenger.core.errors import InvalidRequest
from echo_messenger.models.chat_models import ConversationRecord, MessageRecord
from echo_messenger.repository.base import ChatRepository

_datetime = TypeAdapter(datetime)


def parse_since(value: Optional[str]) -> datetime:
    if value is None or not str(value).strip():
        raise InvalidRequest("A 'since' timestamp is required.")

    try:
        since = _datetime.validate_python(str(value).strip())
    except ValidationError:
        raise InvalidRequest(f"Invalid 'since' timestamp: {value!r}.")

    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since


class PollingSync:
    def __init__(self, repository: ChatRepository):
        self.repository = repository

    def has_updates(self, user_id: str, since: datetime) -> bool:
        return self.repository.count_updated_conversations(user_id, since) > 0

    def new_messages(
        self, conversation: ConversationRecord, since: datetime
    ) -> List[MessageRecord]:
        return self.repository.list_messages(conversation.id, since=since)
