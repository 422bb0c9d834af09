"""
Seed the turmeric Disease Catalog

Usage:
1. Run the SQL first: scripts/setup_tables.sql
2. Run: python scripts/seed_diseases.py

Idempotent: does nothing when the catalog already has entries.
"""

import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from turmeric_care import dependencies
from turmeric_care.services.disease_catalog import seed_diseases

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    if not dependencies.supabase_client:
        logger.error("Missing SUPABASE_URL / SUPABASE_KEY in .env - nothing to seed")
        sys.exit(1)

    logger.info(seed_diseases(dependencies.store))


if __name__ == "__main__":
    main()
