from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class MemberItem(BaseModel):
    username: str
    avatar: Optional[str] = None


class ConversationItem(BaseModel):
    id: str
    updated_at: datetime
    members: List[MemberItem]


class MeResponseModel(BaseModel):
    id: str
    username: str
    avatar: Optional[str] = None
    conversations: List[ConversationItem]


class AvatarModel(BaseModel):
    avatar: str


class AvatarResponseModel(BaseModel):
    avatar: str
