from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UserRecord(BaseModel):
    id: str
    username: str
    username_lowercase: str
    avatar: Optional[str] = None


class MemberInfo(BaseModel):
    username: str
    avatar: Optional[str] = None


class ConversationRecord(BaseModel):
    id: str
    creator_id: Optional[str] = None
    member_ids: List[str] = Field(default_factory=list)
    updated_at: datetime

    def has_member(self, user_id: str) -> bool:
        return str(user_id) in self.member_ids


class ConversationSummary(BaseModel):
    id: str
    updated_at: datetime
    members: List[MemberInfo]


class MessageRecord(BaseModel):
    id: int
    conversation_id: str
    author_id: Optional[str] = None
    content: str
    created_at: datetime
    author_username: Optional[str] = None
    author_avatar: Optional[str] = None


def member_key(member_ids) -> str:
    """Canonical fingerprint of a member set: sorted ids joined by commas."""
    return ",".join(sorted({str(member_id) for member_id in member_ids}))
