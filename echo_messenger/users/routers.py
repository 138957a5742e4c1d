import logging

from fastapi import APIRouter, Depends, HTTPException

from echo_messenger.core.dependencies import get_current_user_id, get_repository
from echo_messenger.core.errors import Internal, NotFound
from echo_messenger.moderation.policy import check_avatar
from echo_messenger.repository.base import ChatRepository

from .schemas import AvatarModel, AvatarResponseModel, MeResponseModel


logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/me", response_model=MeResponseModel, status_code=200)
def get_me(
    user_id: str = Depends(get_current_user_id),
    repository: ChatRepository = Depends(get_repository),
):
    """
    Get the authenticated user's profile and conversations.

    The global room is left out of `conversations`; the rest are ordered by
    most recent activity first, each with its members.

    **Errors**
    - `401`: Invalid or expired token
    - `404`: Profile not found
    - `500`: Database or server error
    """
    try:
        user = repository.get_user(user_id)
        if user is None:
            raise NotFound("Profile not found.")

        return {
            "id": user.id,
            "username": user.username,
            "avatar": user.avatar,
            "conversations": [
                c.model_dump() for c in repository.list_user_conversations(user_id)
            ],
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("get_me_failed")
        raise Internal("Failed to load profile.")


@router.post("/me/avatar", response_model=AvatarResponseModel, status_code=200)
def update_avatar(
    data: AvatarModel,
    user_id: str = Depends(get_current_user_id),
    repository: ChatRepository = Depends(get_repository),
):
    """
    Set the user's avatar to a single emoji.

    Multi code point emoji (skin tones, ZWJ families, flags) count as one.

    **Errors**
    - `400`: Not exactly one emoji, or distorted text
    - `401`: Invalid or expired token
    - `500`: Database or server error
    """
    avatar = check_avatar(data.avatar)

    try:
        repository.update_avatar(user_id, avatar)
        logger.info(f"avatar_updated user={user_id}")
        return {"avatar": avatar}

    except HTTPException:
        raise
    except Exception:
        logger.exception("update_avatar_failed")
        raise Internal("Failed to update avatar.")
