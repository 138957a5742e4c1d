import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from echo_messenger.core.dependencies import get_current_user_id, get_repository
from echo_messenger.core.errors import Internal
from echo_messenger.repository.base import ChatRepository

from .directory import ConversationDirectory
from .messages import MessageStore
from .sync import PollingSync, parse_since
from .schemas import (
    AddMemberModel,
    AddMemberResponseModel,
    ConversationDetailResponseModel,
    ConversationUpdatesResponseModel,
    CreateConversationModel,
    CreateConversationResponseModel,
    LeaveConversationResponseModel,
    NewMessagesResponseModel,
    SendMessageModel,
    SendMessageResponseModel,
)


logger = logging.getLogger(__name__)
router = APIRouter()


def get_directory(repository: ChatRepository = Depends(get_repository)):
    return ConversationDirectory(repository)


def get_message_store(repository: ChatRepository = Depends(get_repository)):
    return MessageStore(repository)


def get_polling_sync(repository: ChatRepository = Depends(get_repository)):
    return PollingSync(repository)


@router.post(
    "/conversations",
    response_model=CreateConversationResponseModel,
    status_code=201,
)
def create_conversation(
    data: CreateConversationModel,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    directory: ConversationDirectory = Depends(get_directory),
):
    """
    Get or create a conversation between the caller and the given users.

    Usernames are matched case-insensitively. If a conversation with exactly
    the same member set already exists it is returned instead of creating a
    new one.

    **Input**
    - `target_usernames`: usernames to chat with (the caller is implied)

    **Returns**
    - `conversation_id`: ID of the conversation
    - `is_new`: Whether the conversation was newly created (201) or reused (200)

    **Errors**
    - 400: No usernames, or only the caller
    - 401: Unauthorized
    - 404: One or more usernames do not exist (`not_found` lists them)
    - 500: Database error
    """
    try:
        conversation, created = directory.create(user_id, data.target_usernames)

        if not created:
            response.status_code = status.HTTP_200_OK

        return {"conversation_id": conversation.id, "is_new": created}

    except HTTPException:
        raise
    except Exception:
        logger.exception("create_conversation_failed")
        raise Internal("Failed to create or fetch conversation.")


# Declared before /conversations/{conversation_id} so "updates" is not taken as an id.
@router.get(
    "/conversations/updates",
    response_model=ConversationUpdatesResponseModel,
    status_code=200,
)
def conversation_updates(
    since: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    sync: PollingSync = Depends(get_polling_sync),
):
    """
    Check whether any of the caller's conversations changed after `since`.

    **Query**
    - `since`: ISO-8601 timestamp, exclusive

    **Returns**
    - `has_updates`: True if at least one conversation has newer activity

    **Errors**
    - 400: Missing or unparseable `since`
    - 401: Unauthorized
    - 500: Database error
    """
    since_at = parse_since(since)

    try:
        return {"has_updates": sync.has_updates(user_id, since_at)}

    except HTTPException:
        raise
    except Exception:
        logger.exception("conversation_updates_failed")
        raise Internal("Failed to check for updates.")


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationDetailResponseModel,
    status_code=200,
)
def get_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: ChatRepository = Depends(get_repository),
    directory: ConversationDirectory = Depends(get_directory),
    messages: MessageStore = Depends(get_message_store),
):
    """
    Retrieve a conversation's members and its full message history.

    Members are ordered by username, messages from oldest to newest.

    **Errors**
    - 401: Unauthorized
    - 403: Caller is not a member
    - 404: Conversation does not exist
    - 500: Database error
    """
    try:
        conversation = directory.check_membership(conversation_id, user_id)

        return {
            "id": conversation.id,
            "members": [m.model_dump() for m in repository.list_members(conversation.id)],
            "messages": [m.model_dump() for m in messages.history(conversation)],
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("get_conversation_failed")
        raise Internal("Failed to retrieve conversation.")


@router.post(
    "/conversations/{conversation_id}/members",
    response_model=AddMemberResponseModel,
    status_code=200,
)
def add_conversation_member(
    conversation_id: str,
    data: AddMemberModel,
    user_id: str = Depends(get_current_user_id),
    directory: ConversationDirectory = Depends(get_directory),
):
    """
    Add another user to a conversation the caller belongs to.

    Adding a member does not count as activity; `updated_at` is unchanged.

    **Errors**
    - 401: Unauthorized
    - 403: Caller is not a member
    - 404: Conversation or username does not exist
    - 409: User is already a member
    - 500: Database error
    """
    try:
        conversation = directory.check_membership(conversation_id, user_id)
        directory.add_member(conversation, data.username)

        return {"message": "User added successfully."}

    except HTTPException:
        raise
    except Exception:
        logger.exception("add_conversation_member_failed")
        raise Internal("Failed to add user to conversation.")


@router.post(
    "/conversations/{conversation_id}/leave",
    response_model=LeaveConversationResponseModel,
    status_code=200,
)
def leave_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    directory: ConversationDirectory = Depends(get_directory),
):
    """
    Leave a conversation. The last member leaving deletes it.

    **Returns**
    - `deleted`: True if the conversation was deleted

    **Errors**
    - 401: Unauthorized
    - 403: Not a member, or the conversation is the global room
    - 404: Conversation does not exist
    - 500: Database error
    """
    try:
        conversation = directory.check_membership(conversation_id, user_id)
        return {"deleted": directory.leave(conversation, user_id)}

    except HTTPException:
        raise
    except Exception:
        logger.exception("leave_conversation_failed")
        raise Internal("Failed to leave conversation.")


@router.post(
    "/messages",
    response_model=SendMessageResponseModel,
    status_code=201,
)
def send_message(
    data: SendMessageModel,
    user_id: str = Depends(get_current_user_id),
    directory: ConversationDirectory = Depends(get_directory),
    messages: MessageStore = Depends(get_message_store),
):
    """
    Send a message to an existing conversation.

    Profanity is masked with asterisks; text stacked with combining marks
    is rejected. The stored message is echoed back.

    **Input**
    - `conversation_id`: ID of the conversation
    - `content`: Message text

    **Errors**
    - 400: Empty or distorted message
    - 401: Unauthorized
    - 403: Caller is not a member
    - 404: Conversation not found
    - 500: Database error
    """
    try:
        conversation = directory.check_membership(data.conversation_id, user_id)
        message = messages.post(conversation, user_id, data.content)

        return {"sent_message": message.model_dump()}

    except HTTPException:
        raise
    except Exception:
        logger.exception("send_message_failed")
        raise Internal("Failed to send message.")


@router.get(
    "/conversations/{conversation_id}/messages/new",
    response_model=NewMessagesResponseModel,
    status_code=200,
)
def new_messages(
    conversation_id: str,
    since: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    directory: ConversationDirectory = Depends(get_directory),
    sync: PollingSync = Depends(get_polling_sync),
):
    """
    Fetch messages created after `since`, oldest first.

    Clients pass the `created_at` of the last message they processed.

    **Errors**
    - 400: Missing or unparseable `since`
    - 401: Unauthorized
    - 403: Caller is not a member
    - 404: Conversation not found
    - 500: Database error
    """
    try:
        conversation = directory.check_membership(conversation_id, user_id)
        since_at = parse_since(since)

        return {
            "messages": [m.model_dump() for m in sync.new_messages(conversation, since_at)]
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("new_messages_failed")
        raise Internal("Failed to retrieve new messages.")
