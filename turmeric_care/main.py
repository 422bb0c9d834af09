# TurmericCare - turmeric leaf disease identification
import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from turmeric_care import __version__, dependencies
from turmeric_care.config import SECRET_KEY, SEED_ON_STARTUP
from turmeric_care.routers import analysis, auth, diseases, health, web
from turmeric_care.services.disease_catalog import seed_diseases
from turmeric_care.templating import STATIC_DIR
from turmeric_care.utils.rate_limiter import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting TurmericCare v{__version__}")
    logger.info(f"OpenAI API: {'✓' if dependencies.openai_client else '✗'}")
    logger.info(f"Supabase: {'✓' if dependencies.supabase_client else '✗'}")
    logger.info(f"Store: {dependencies.store.backend}")
    logger.info("=" * 60)

    if SEED_ON_STARTUP:
        try:
            logger.info(seed_diseases(dependencies.store))
        except Exception as e:
            logger.error(f"Disease catalog seeding failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")


# Initialize FastAPI app
app = FastAPI(
    title="TurmericCare",
    description="AI-powered turmeric leaf disease identification",
    version=__version__,
    lifespan=lifespan
)

# Rate Limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Session cookie (signed-in user + UI state)
app.add_middleware(SessionMiddleware, secret_key=SECRET_KEY)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if os.path.exists(STATIC_DIR):
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(analysis.router)
app.include_router(diseases.router)
app.include_router(web.router)


if __name__ == "__main__":
    uvicorn.run("turmeric_care.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
