"""
Account Service
Email + password accounts for analysis history
"""

import logging
from typing import Optional

import bcrypt

from turmeric_care import dependencies
from turmeric_care.config import BCRYPT_ROUNDS, MAX_PASSWORD_BYTES, MIN_PASSWORD_LENGTH
from turmeric_care.errors import AccountError
from turmeric_care.models import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode('utf-8')


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), stored_hash.encode('utf-8'))
    except ValueError as e:
        logger.warning(f"Password check failed: {e}")
        return False


def create_user(email: str, password: str, store=None) -> User:
    """
    Register a new account

    Raises:
        AccountError: invalid email, short or overlong password, or email already taken
    """
    store = store or dependencies.store
    email = normalize_email(email)

    if "@" not in email:
        raise AccountError("Please enter a valid email address")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AccountError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise AccountError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    if store.get_user_by_email(email):
        raise AccountError("An account with this email already exists")

    user = store.insert_user(email, hash_password(password))
    logger.info(f"✓ Created account {user.id}")
    return user


def authenticate(email: str, password: str, store=None) -> Optional[User]:
    """Return the user when the credentials match, None otherwise"""
    store = store or dependencies.store
    user = store.get_user_by_email(normalize_email(email))
    if user and verify_password(password or "", user.password_hash):
        return user

    logger.info("Sign-in rejected")
    return None


def get_user(user_id: Optional[str], store=None) -> Optional[User]:
    if not user_id:
        return None
    store = store or dependencies.store
    return store.get_user(user_id)
