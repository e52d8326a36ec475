"""Identity and secret generation for new instances."""

import base64
import secrets

ALPHANUM_LOWER = "abcdefghijklmnopqrstuvwxyz0123456789"

PASSWORD_MIN_LENGTH = 24
PASSWORD_ENTROPY_BYTES = 32


def random_lower_alnum(n: int) -> str:
    """Return ``n`` characters drawn uniformly from ``[a-z0-9]``."""
    if n <= 0:
        raise ValueError("n must be > 0")
    return "".join(secrets.choice(ALPHANUM_LOWER) for _ in range(n))


def random_password(min_length: int = PASSWORD_MIN_LENGTH) -> str:
    """Return a URL-safe password derived from 32 random bytes.

    Unpadded URL-safe base64 of 32 bytes is 43 characters long.
    """
    min_length = max(min_length, PASSWORD_MIN_LENGTH)
    raw = secrets.token_bytes(PASSWORD_ENTROPY_BYTES)
    password = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    if len(password) < min_length:
        raise ValueError("generated password too short")
    return password


def generate_instance_name() -> str:
    return f"db-{random_lower_alnum(8)}"


def generate_database_name() -> str:
    return f"pg_{random_lower_alnum(10)}"


def generate_user_name() -> str:
    return f"u_{random_lower_alnum(10)}"
