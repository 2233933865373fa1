"""Password hashing; argon2 through a passlib CryptContext."""

from typing import Optional, Tuple

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def check_password(plain_password: str, stored_hash: str) -> Tuple[bool, Optional[str]]:
    """Verify a password against its stored hash.

    Returns ``(matches, replacement_hash)``; the replacement is set when the
    stored hash uses outdated parameters and should be saved in its place.
    Malformed stored hashes count as a mismatch.
    """
    try:
        return pwd_context.verify_and_update(plain_password, stored_hash)
    except (ValueError, TypeError):
        return False, None
