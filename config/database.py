"""
Supabase client for the catalog store.

Every service reads and writes through the one cached client returned by
get_supabase_client().
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)

# Table name -> key reported by check_connection()
CATALOG_TABLES = {
    "products": "products_count",
    "product_variants": "variants_count",
    "inventory_movements": "movements_count",
    "settings": "settings_count",
}


class StoreConnectionError(Exception):
    """The Supabase client could not be created."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached Supabase client.

    Call reset_connection() to build a new one.

    Raises:
        StoreConnectionError: If the client cannot be created
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )
        client = create_client(settings.supabase_url, settings.supabase_key)

    except Exception as e:
        logger.error(
            "supabase_client_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise StoreConnectionError(f"Failed to connect to Supabase: {e}") from e

    logger.info("supabase_client_created")
    return client


def check_connection() -> dict:
    """
    Count rows in each catalog table.

    Returns:
        {"status": "healthy", "products_count": ..., ...} or
        {"status": "unhealthy", "error": ...}
    """
    status = {"status": "healthy"}
    try:
        client = get_supabase_client()
        for table, key in CATALOG_TABLES.items():
            result = client.table(table).select("id", count="exact").execute()
            status[key] = result.count
    except Exception as e:
        logger.warning("catalog_store_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}

    return status


def reset_connection():
    """Drop the cached client so the next call reconnects."""
    get_supabase_client.cache_clear()
    logger.info("database_connection_reset")
