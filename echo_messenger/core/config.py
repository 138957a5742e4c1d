import os
from dotenv import load_dotenv

from echo_messenger.utils.env_helper import env_bool, env_list, env_none_or_str

load_dotenv()


GLOBAL_CONVERSATION_ID = "global"

SUPABASE_URL = os.getenv("PUBLIC_SUPABASE_URL")
SUPABASE_KEY = os.getenv("SECRET_API_KEY")
JWT_SIGN_KEY = os.getenv("SUPABASE_JWT_SECRET")
JWT_ISSUER = f"{SUPABASE_URL}/auth/v1" if SUPABASE_URL else None

# "supabase" or "memory"
STORE_BACKEND = os.getenv("STORE_BACKEND", "supabase").lower()

CORS_ORIGINS = env_list(
    "CORS_ORIGINS", default=["http://localhost:5173", "http://localhost:8080"]
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "default")

BLOCKLIST_FILE = env_none_or_str("BLOCKLIST_FILE", None)

GUEST_EMAIL_DOMAIN = os.getenv("GUEST_EMAIL_DOMAIN", "guest.echo.local")

REFRESH_COOKIE_NAME = "refresh_token"
REFRESH_COOKIE_PATH = "/auth/access"
REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 7  # 7 days


def refresh_cookie_options() -> dict:
    return {
        "httponly": env_bool("HTTPONLY", default=True),
        "secure": env_bool("SECURE", default=False),
        "samesite": os.getenv("SAMESITE", "Lax"),
        "domain": env_none_or_str("COOKIE_DOMAIN", None),
        "max_age": REFRESH_COOKIE_MAX_AGE,
        "path": REFRESH_COOKIE_PATH,
    }
