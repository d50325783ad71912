"""Password hashing utilities using bcrypt."""

from typing import Protocol

import bcrypt


class PasswordHasher(Protocol):
    """One-way password hashing capability."""

    def hash(self, password: str) -> str:
        """Hash a plain text password."""
        ...

    def verify(self, password: str, hashed: str) -> bool:
        """Check a plain text password against a hash."""
        ...


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash string
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash.

    Args:
        plain_password: Plain text password to check
        hashed_password: Bcrypt hash to check against

    Returns:
        True if password matches hash
    """
    if not plain_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash
        return False


class BcryptPasswordHasher:
    """Default PasswordHasher backed by bcrypt."""

    def hash(self, password: str) -> str:
        """Hash a plain text password."""
        return hash_password(password)

    def verify(self, password: str, hashed: str) -> bool:
        """Check a plain text password against a hash."""
        return verify_password(password, hashed)
