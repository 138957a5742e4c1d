import re
from pydantic import BaseModel, SecretStr, field_validator, model_validator

from echo_messenger.core.errors import ChatError
from echo_messenger.moderation.policy import check_username


"""
auth/register
"""


class UserRegistrationModel(BaseModel):
    email: str
    username: str
    password: SecretStr
    confirm_password: SecretStr

    @field_validator("username")
    @classmethod
    def validate_username(cls, username: str) -> str:
        username = username.strip()

        # Length check (min 1, max 32)
        if not (1 <= len(username) <= 32):
            raise ValueError(
                f"Username must be between 1 and 32 characters long (got {len(username)})."
            )

        if any(ch.isspace() for ch in username):
            raise ValueError("Username cannot contain whitespace.")

        try:
            return check_username(username)
        except ChatError as error:
            raise ValueError(error.message)

    @field_validator("password")
    @classmethod
    def validate_password(cls, password: SecretStr) -> SecretStr:
        password_str = password.get_secret_value()

        # Minimum length of 8 characters (no maximum)
        if len(password_str) < 8:
            raise ValueError("Password must be at least 8 characters long.")

        # Must include letters (upper and lower), numbers, and special characters.
        password_regex = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])(?=.*[!@#$%^&*()_+={}\[\]|\\;:'\",.<>?/~`-]).{8,}$"

        if not re.match(password_regex, password_str):
            # General error message to covers which types of characters are missing.
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, one number, and one special character."
            )

        return password

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password.get_secret_value() != self.confirm_password.get_secret_value():
            raise ValueError("Passwords do not match.")
        return self


class UserRegistrationResponseModel(BaseModel):
    id: str
    email: str
    username: str


"""
auth/login
"""


class UserLoginModel(BaseModel):
    email: str
    password: SecretStr


class UserLoginResponseModel(BaseModel):
    access_token: str
    expires_in: int
    user_id: str
    email: str


"""
auth/guest
"""


class GuestLoginResponseModel(UserLoginResponseModel):
    username: str


"""
auth/access
"""


class AccessTokenResponseModel(BaseModel):
    access_token: str


"""
auth/logout
"""


class LogoutResponseModel(BaseModel):
    logged_out: bool
