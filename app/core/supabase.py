import logging
from typing import Optional
from supabase import create_async_client, AsyncClient
from app.core.config import settings

logger = logging.getLogger(__name__)


class SupabaseManager:
    """
    Lazily creates the async Supabase client used by the order store.

    Orders are written by the backend only, so the Service Role Key is
    preferred when it is set; otherwise the anon key is used and RLS on the
    orders table has to allow inserts and updates.
    """

    client: Optional[AsyncClient] = None

    @classmethod
    async def get_client(cls) -> AsyncClient:
        if cls.client is None:
            url: str = settings.SUPABASE_URL
            key: Optional[str] = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY
            if not url or not key:
                raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set when ORDER_STORE=supabase.")
            if not settings.SUPABASE_SERVICE_ROLE_KEY:
                logger.warning("SUPABASE_SERVICE_ROLE_KEY not found. Using SUPABASE_KEY, RLS might block order writes.")
            cls.client = await create_async_client(url, key)
        return cls.client


# Global instance to access the client manager
db = SupabaseManager()
