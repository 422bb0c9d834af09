import logging
from fastapi import APIRouter

from turmeric_care import __version__, dependencies

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": __version__,
        "store": dependencies.store.backend,
        "services": {
            "openai": bool(dependencies.openai_client),
            "supabase": bool(dependencies.supabase_client)
        }
    }
