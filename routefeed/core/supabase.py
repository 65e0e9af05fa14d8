from functools import lru_cache
from supabase import create_client, Client
from routefeed.core.config import settings

@lru_cache
def get_supabase_client() -> Client:
    """Get Supabase client instance"""
    return create_client(settings.supabase_url, settings.supabase_key)
