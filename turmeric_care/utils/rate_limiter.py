import logging
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

# Shared by the analyze endpoints; registered on app.state in main.py
limiter = Limiter(key_func=get_remote_address)
