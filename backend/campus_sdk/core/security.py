# campus_sdk/core/security.py
"""
Security module for authentication.
Handles password hashing, session token generation and one-time passcodes.
"""
import hmac
import secrets

from passlib.context import CryptContext

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

SESSION_TOKEN_BYTES = 32  # 256 bits of entropy, URL-safe encoded


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in the users collection)

    Note: Never store plain text passwords. Always use this function before saving.
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """
    Verify a plain text password against a hashed password.

    Args:
        plain: Plain text password to verify
        hashed: Hashed password from the user record (may be missing)

    Returns:
        True if password matches, False otherwise (including unusable hashes)
    """
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # not a hash passlib recognises
        return False


def new_session_token() -> str:
    """Opaque, unguessable session token."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def new_otp(length: int = 6) -> str:
    """Numeric one-time passcode, zero-padded to `length` digits."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def otp_matches(expected: str, supplied: str) -> bool:
    """Constant-time OTP comparison."""
    return hmac.compare_digest(expected.encode(), (supplied or "").strip().encode())
