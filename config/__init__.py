"""
Configuration: environment settings and the Supabase client.
"""

from config.settings import settings, get_settings, Settings, IdentityPolicy
from config.database import (
    get_supabase_client,
    check_connection,
    reset_connection,
    StoreConnectionError,
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",
    "IdentityPolicy",

    # Database
    "get_supabase_client",
    "check_connection",
    "reset_connection",
    "StoreConnectionError",
]
