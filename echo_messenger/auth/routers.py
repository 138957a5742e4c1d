import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from supabase import AuthApiError, Client

from echo_messenger.chat.messages import MessageStore
from echo_messenger.core import config
from echo_messenger.core.dependencies import get_repository
from echo_messenger.core.errors import Conflict, Internal, Unauthenticated
from echo_messenger.core.supabase_client import get_supabase
from echo_messenger.repository.base import ChatRepository
from echo_messenger.utils.random_names import (
    random_greeting,
    random_password,
    random_username,
)
from .schemas import (
    UserRegistrationModel,
    UserRegistrationResponseModel,
    UserLoginModel,
    UserLoginResponseModel,
    GuestLoginResponseModel,
    AccessTokenResponseModel,
    LogoutResponseModel,
)


logger = logging.getLogger(__name__)
router = APIRouter()

GUEST_USERNAME_ATTEMPTS = 5


def _set_refresh_cookie(response: Response, refresh_token: str):
    response.set_cookie(
        key=config.REFRESH_COOKIE_NAME,
        value=refresh_token,
        **config.refresh_cookie_options(),
    )


def _create_profile_or_rollback(
    supabase: Client, repository: ChatRepository, user_id: str, username: str
):
    """Create the profile; on any failure delete the just-created auth user and re-raise."""
    try:
        return repository.create_profile(user_id, username)
    except Exception as error:
        logger.error(f"create_profile_failed user={user_id} error={error}")
        try:
            supabase.auth.admin.delete_user(user_id)
        except Exception:
            logger.exception(f"auth_user_rollback_failed user={user_id}")
        raise


def _session_payload(res) -> dict:
    return {
        "access_token": res.session.access_token,
        "expires_in": res.session.expires_in,
        "user_id": str(res.user.id),
        "email": res.user.email,
    }


@router.post("/register", response_model=UserRegistrationResponseModel, status_code=201)
def register_user(
    data: UserRegistrationModel,
    supabase: Client = Depends(get_supabase),
    repository: ChatRepository = Depends(get_repository),
):
    """
    Register a new user.

    This endpoint creates a Supabase Auth user and a corresponding profile
    record. The profile is joined to the global room in the same transaction.

    **Input Fields**
    - **email**: A valid user email. Must not already exist in Supabase Auth.
    - **username**: 1-32 characters, no whitespace, no profanity or distorted text.
      Case is preserved; uniqueness is case-insensitive.
    - **password**: Minimum 8 characters with lower, upper, digit and symbol.
    - **confirm_password**: Must equal `password`.

    **Returns**
    - User ID
    - Email
    - Username

    **Errors**
    - 400: Invalid input or failed to create user
    - 409: Email or Username already registered
    - 500: Unexpected Supabase or server error
    """
    # Check if username already exists
    if repository.find_users_by_lowercase([data.username]):
        raise Conflict("Username already exists.")

    # Create Supabase Auth user
    try:
        res = supabase.auth.sign_up(
            {
                "email": data.email,
                "password": data.password.get_secret_value(),
            }
        )
    except AuthApiError as error:
        logger.error(f"supabase_error={error}")
        raise Conflict(str(error))

    if not res.user:
        raise Internal("Failed to create user")

    user_id = str(res.user.id)

    try:
        _create_profile_or_rollback(supabase, repository, user_id, data.username)
    except HTTPException:
        raise
    except Exception:
        logger.exception("create_profile_failed")
        raise Internal("Failed to create user profile.")

    logger.info(f"user_register_success email={data.email}, username={data.username}")

    return {
        "id": user_id,
        "email": res.user.email,
        "username": data.username,
    }


@router.post("/login", response_model=UserLoginResponseModel, status_code=200)
def login_user(
    user_data: UserLoginModel,
    response: Response,
    supabase: Client = Depends(get_supabase),
):
    """
    Authenticate a user with email and password.

    This endpoint checks credentials against Supabase Auth and returns a new
    access token along with basic user information. The refresh token is set
    in an HttpOnly cookie.

    **Returns**
    - `access_token`: A short-lived JWT used for authorized API requests.
    - `user_id`: The authenticated user's ID.
    - `email`: The authenticated user's email.

    **Errors**
    - 401: Invalid email or password
    - 500: Supabase or internal server error
    """
    try:
        res = supabase.auth.sign_in_with_password(
            {
                "email": user_data.email,
                "password": user_data.password.get_secret_value(),
            }
        )
    except AuthApiError as error:
        raise Unauthenticated(error.message)
    except Exception:
        logger.exception("login_failed")
        raise Internal("An internal server error occurred during login.")

    if not res.session:
        raise Internal("Supabase authentication returned an unexpected response.")

    _set_refresh_cookie(response, res.session.refresh_token)
    logger.info(f"user_login_success email={user_data.email}")

    return _session_payload(res)


@router.post("/guest", response_model=GuestLoginResponseModel, status_code=201)
def guest_login(
    response: Response,
    supabase: Client = Depends(get_supabase),
    repository: ChatRepository = Depends(get_repository),
):
    """
    Create a throw-away account and log it in.

    The guest gets a random `AdjectiveNoun##` username, joins the global room
    and greets it with a first message.

    **Returns**
    - Same fields as `/auth/login` plus the generated `username`

    **Errors**
    - 409: Could not find a free username
    - 500: Supabase or internal server error
    """
    username = None
    for _ in range(GUEST_USERNAME_ATTEMPTS):
        candidate = random_username()
        if not repository.find_users_by_lowercase([candidate]):
            username = candidate
            break

    if username is None:
        raise Conflict("Could not generate a free guest username.")

    email = f"{username.lower()}-{secrets.token_hex(4)}@{config.GUEST_EMAIL_DOMAIN}"
    password = random_password()

    try:
        res = supabase.auth.sign_up({"email": email, "password": password})
        if not res.user:
            raise Internal("Failed to create guest user")

        user_id = str(res.user.id)
        _create_profile_or_rollback(supabase, repository, user_id, username)

        global_room = repository.get_conversation(config.GLOBAL_CONVERSATION_ID)
        MessageStore(repository).post(global_room, user_id, random_greeting(username))

        if not res.session:
            res = supabase.auth.sign_in_with_password(
                {"email": email, "password": password}
            )

    except HTTPException:
        raise
    except AuthApiError as error:
        logger.error(f"supabase_error={error}")
        raise Internal("Failed to create guest user")
    except Exception:
        logger.exception("guest_login_failed")
        raise Internal("An internal server error occurred during guest login.")

    _set_refresh_cookie(response, res.session.refresh_token)
    logger.info(f"guest_login_success username={username}")

    return {**_session_payload(res), "username": username}


@router.get("/access", response_model=AccessTokenResponseModel, status_code=200)
def get_new_access(
    request: Request,
    response: Response,
    supabase: Client = Depends(get_supabase),
):
    """
    Issue a new access token using the refresh token stored in an HttpOnly cookie.

    If rotation is enabled, the new refresh token replaces the cookie.

    **Errors**
    - 401: Missing, expired, revoked, or invalid refresh token
    """
    refresh_token = request.cookies.get(config.REFRESH_COOKIE_NAME)

    if not refresh_token:
        raise Unauthenticated("No refresh token provided.")

    try:
        session = supabase.auth.refresh_session(refresh_token)

        _set_refresh_cookie(response, session.session.refresh_token)
        return {"access_token": session.session.access_token}

    except Exception:
        logger.info("refresh_session_failed")
        response.delete_cookie(
            key=config.REFRESH_COOKIE_NAME,
            domain=config.refresh_cookie_options()["domain"],
            path=config.REFRESH_COOKIE_PATH,
        )

        raise Unauthenticated(
            "Refresh token invalid or expired. Please log in again.",
        )


@router.post("/logout", response_model=LogoutResponseModel, status_code=status.HTTP_200_OK)
def logout(response: Response, supabase: Client = Depends(get_supabase)):
    """
    Log out by clearing the refresh_token cookie. Supabase cannot invalidate
    JWTs early, so existing access tokens stay valid until they expire.
    """
    try:
        supabase.auth.sign_out()
    except AuthApiError as error:
        logger.info(f"sign_out_failed error={error}")

    response.delete_cookie(
        key=config.REFRESH_COOKIE_NAME,
        path=config.REFRESH_COOKIE_PATH,  # must match set_cookie()
        domain=config.refresh_cookie_options()["domain"],
    )

    return {"logged_out": True}
