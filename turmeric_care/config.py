import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# ============================================================================#
# ENVIRONMENT / SERVICES
# ============================================================================#
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL")  # OpenAI-compatible gateway, optional
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_IMAGE_BUCKET = os.getenv("SUPABASE_IMAGE_BUCKET", "leaf-images")

# Session cookie signing
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")

# Seed the disease catalog during startup
SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "1") == "1"

# ============================================================================#
# ANALYSIS
# ============================================================================#
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB
CLASSIFY_MAX_TOKENS = 500
TREATMENT_MAX_TOKENS = 400

# Number of analyses shown in a user's history
HISTORY_LIMIT = 10

# Seconds the loading page waits before giving up on a result
ANALYSIS_DISPLAY_TIMEOUT = int(os.getenv("ANALYSIS_DISPLAY_TIMEOUT", "60"))

# Loading page refresh interval (seconds)
ANALYSIS_POLL_INTERVAL = 3

# Rate limiting for the analyze endpoints
ANALYZE_RATE_LIMIT = os.getenv("ANALYZE_RATE_LIMIT", "10/minute")

# Accounts
MIN_PASSWORD_LENGTH = 8
# bcrypt only hashes the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
