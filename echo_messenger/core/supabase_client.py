from functools import lru_cache

from supabase import create_client, Client

from echo_messenger.core import config


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Shared Supabase client, created on first use."""
    return create_client(config.SUPABASE_URL, config.SUPABASE_KEY)
