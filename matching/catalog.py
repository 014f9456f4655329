from core.errors import CatalogUnavailable
from core.log import get_logger
from database import StoreError, fetch_careers
from models.career import CatalogSnapshot
from supabase_client import SupabaseClient

logger = get_logger(__name__)


async def read_catalog(client: SupabaseClient) -> CatalogSnapshot:
    """Read every career once and freeze it for the rest of the run."""
    try:
        careers = await fetch_careers(client)
    except StoreError as e:
        raise CatalogUnavailable(f"Could not read career catalog: {e}", e) from e

    logger.info("Loaded %d careers", len(careers))
    return CatalogSnapshot.of(careers)
