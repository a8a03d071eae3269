import logging
from typing import Optional

from supabase import acreate_client, AsyncClient

from app.config import settings
from app.db.store import Database

logger = logging.getLogger(__name__)

service_client: Optional[AsyncClient] = None
database: Optional[Database] = None


async def init_supabase_service_client():
    global service_client
    if not service_client:
        service_client = await acreate_client(
            settings.supabase_url, settings.supabase_service_key
        )
        logger.info("Initialized Supabase service client")


async def init_database():
    global database
    if database:
        return

    # Every authenticated route verifies its token through Supabase Auth.
    if not settings.supabase_url:
        raise ValueError(
            "SUPABASE_URL is not set; it is required for authentication"
        )
    await init_supabase_service_client()

    if settings.storage_backend == "supabase":
        database = Database.supabase(service_client)
    elif settings.storage_backend == "memory":
        database = Database.in_memory()
        logger.warning("Using in-memory storage; data is lost on restart")
    else:
        raise ValueError(f"Unknown storage backend: {settings.storage_backend}")

    logger.info(f"Initialized {settings.storage_backend} database")


def get_service_client() -> Optional[AsyncClient]:
    return service_client


async def create_session_client() -> AsyncClient:
    """A throwaway anon-key client for sign-in flows, which store the
    resulting session on the client they run on."""
    return await acreate_client(settings.supabase_url, settings.supabase_key)


def get_db() -> Database:
    if not database:
        raise Exception("database not initialized")
    return database
