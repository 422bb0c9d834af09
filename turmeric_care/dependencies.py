import logging
from openai import AsyncOpenAI
from supabase import create_client, Client

from turmeric_care.config import (
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    SUPABASE_URL,
    SUPABASE_KEY,
    SUPABASE_IMAGE_BUCKET,
)
from turmeric_care.services.storage import MemoryStore, SupabaseStore

logger = logging.getLogger(__name__)

# Initialize OpenAI (vision + treatment advice)
openai_client = None
if OPENAI_API_KEY:
    openai_client = AsyncOpenAI(api_key=OPENAI_API_KEY, base_url=OPENAI_BASE_URL)
    logger.info("OpenAI initialized successfully")

# Initialize Supabase
supabase_client: Client = None
if SUPABASE_URL and SUPABASE_KEY:
    try:
        supabase_client = create_client(SUPABASE_URL, SUPABASE_KEY)
        logger.info("Supabase initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize Supabase: {e}")

# Store: Supabase when available, memory otherwise
if supabase_client:
    store = SupabaseStore(supabase_client, SUPABASE_IMAGE_BUCKET)
else:
    logger.warning("Supabase not configured - using in-memory store (data is lost on restart)")
    store = MemoryStore()
