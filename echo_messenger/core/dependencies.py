import logging
from functools import lru_cache

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from echo_messenger.core import config
from echo_messenger.core.errors import Unauthenticated
from echo_messenger.repository.base import ChatRepository

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    if credentials is None:
        raise Unauthenticated("Missing bearer token")

    token = credentials.credentials

    try:
        payload = jwt.decode(
            token,
            config.JWT_SIGN_KEY,
            algorithms=["HS256"],
            issuer=config.JWT_ISSUER,
            options={"verify_aud": False},
            leeway=60,
        )
        return payload

    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")

    except jwt.InvalidTokenError as e:
        logger.info(f"jwt_verification_failed error={e}")
        raise Unauthenticated("Invalid token")


def get_current_user_id(payload: dict = Depends(verify_token)) -> str:
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Token has no subject")
    return str(user_id)


@lru_cache(maxsize=1)
def get_repository() -> ChatRepository:
    if config.STORE_BACKEND == "memory":
        from echo_messenger.repository.memory_repo import MemoryRepository

        logger.warning("Using in-memory store; data is lost on restart")
        return MemoryRepository()

    from echo_messenger.core.supabase_client import get_supabase
    from echo_messenger.repository.supabase_repo import SupabaseRepository

    return SupabaseRepository(get_supabase())
