import logging

from navstation.config import Settings
from navstation.database.base import EntityStore, OrderAssignment, Scope

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> EntityStore:
    """Build the EntityStore selected by STORAGE_BACKEND."""
    backend = settings.storage_backend.strip().lower()
    if backend == "sqlite":
        from navstation.database.sqlite_store import SQLiteStore
        logger.info(f"Using SQLite store at {settings.sqlite_path}")
        return SQLiteStore(settings.sqlite_path)
    if backend == "supabase":
        from navstation.database.supabase_client import get_supabase
        from navstation.database.supabase_store import SupabaseStore
        logger.info("Using Supabase store")
        return SupabaseStore(get_supabase(settings))
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


__all__ = ["EntityStore", "OrderAssignment", "Scope", "create_store"]
