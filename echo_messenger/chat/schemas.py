from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional


class MemberData(BaseModel):
    username: str
    avatar: Optional[str] = None


class MessageData(BaseModel):
    id: int
    conversation_id: str
    author_id: Optional[str] = None
    author_username: Optional[str] = None
    author_avatar: Optional[str] = None
    content: str
    created_at: datetime


# Create conversation
class CreateConversationModel(BaseModel):
    target_usernames: List[str] = Field(default_factory=list, max_length=50)

    @field_validator("target_usernames")
    @classmethod
    def strip_usernames(cls, usernames: List[str]) -> List[str]:
        return [name.strip() for name in usernames if name.strip()]


class CreateConversationResponseModel(BaseModel):
    conversation_id: str
    is_new: bool


# Fetch conversation
class ConversationDetailResponseModel(BaseModel):
    id: str
    members: List[MemberData]
    messages: List[MessageData]


# Add member
class AddMemberModel(BaseModel):
    username: str

    @field_validator("username")
    @classmethod
    def strip_username(cls, username: str) -> str:
        username = username.strip()
        if not username:
            raise ValueError("Username of user to add is required.")
        return username


class AddMemberResponseModel(BaseModel):
    message: str


# Leave
class LeaveConversationResponseModel(BaseModel):
    deleted: bool


# Send Messages
class SendMessageModel(BaseModel):
    conversation_id: str = Field(min_length=1)
    content: str


class SendMessageResponseModel(BaseModel):
    sent_message: MessageData


# Polling
class ConversationUpdatesResponseModel(BaseModel):
    has_updates: bool


class NewMessagesResponseModel(BaseModel):
    messages: List[MessageData]
