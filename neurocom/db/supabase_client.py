"""Process-wide Supabase client."""

from functools import lru_cache

from supabase import Client, create_client

from neurocom.core.config import get_settings
from neurocom.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Service-role client shared by every store call.

    Row ownership is enforced by the queries in ``ChatStore``, not by RLS.

    Raises:
        RuntimeError: If the client cannot be created
    """
    settings = get_settings()
    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        logger.error(f"Supabase client initialization failed: {e}")
        raise RuntimeError(f"Supabase client unavailable: {e}") from e
    logger.debug(f"Supabase client ready for {settings.SUPABASE_URL}")
    return client
