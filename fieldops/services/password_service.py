"""One-way password hashing with bcrypt."""

import bcrypt

from fieldops.core.config import constants


def hash_password(password: str) -> str:
    """Hash a plain-text password for storage."""
    salt = bcrypt.gensalt(rounds=constants.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Check a plain-text password against a stored hash."""
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Malformed stored hash
        return False
