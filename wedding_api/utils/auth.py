"""
Password hashing utilities for admin accounts and guestbook entries.
Uses bcrypt for secure password hashing.
"""
import hmac
import bcrypt

# bcrypt only uses the first 72 bytes; newer releases reject longer input
MAX_BCRYPT_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode('utf-8')[:MAX_BCRYPT_BYTES]


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(_encode(password), salt)
    return hashed.decode('utf-8')


def is_bcrypt_hash(value: str) -> bool:
    return value.startswith(("$2a$", "$2b$", "$2y$"))


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hashed password.

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(
            _encode(password),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def verify_guestbook_password(password: str, stored_password: str) -> tuple[bool, bool]:
    """
    Check a guestbook deletion password.

    Entries written before hashing was introduced hold the plaintext password;
    those are compared in constant time and flagged for re-hashing.

    Returns:
        (matches, needs_rehash)
    """
    if is_bcrypt_hash(stored_password):
        return verify_password(password, stored_password), False

    matches = hmac.compare_digest(password.encode('utf-8'), stored_password.encode('utf-8'))
    return matches, matches
