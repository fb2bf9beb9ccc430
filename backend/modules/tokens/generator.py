"""
Cryptographically secure code and token generation.

Every value comes from the ``secrets`` module. Raw tokens are handed to the
caller for delivery to the user and only their SHA-256 digest is stored.
"""

import hashlib
import secrets
import string

RECOVERY_CODE_ALPHABET = string.ascii_uppercase + string.digits
RECOVERY_CODE_GROUP = 5

VERIFICATION_CODE_MIN = 100000
VERIFICATION_CODE_MAX = 999999


def generate_verification_code() -> str:
    """
    Generate a six-digit numeric code for display in emails.

    Returns:
        String of an integer drawn uniformly from [100000, 999999]
    """
    span = VERIFICATION_CODE_MAX - VERIFICATION_CODE_MIN + 1
    return str(VERIFICATION_CODE_MIN + secrets.randbelow(span))


def generate_recovery_code() -> str:
    """
    Generate a recovery code in the ``XXXXX-XXXXX`` format.

    Returns:
        Ten uppercase alphanumeric characters with a hyphen after the fifth
    """
    chars = "".join(
        secrets.choice(RECOVERY_CODE_ALPHABET) for _ in range(RECOVERY_CODE_GROUP * 2)
    )
    return f"{chars[:RECOVERY_CODE_GROUP]}-{chars[RECOVERY_CODE_GROUP:]}"


def generate_secure_token(nbytes: int = 32) -> str:
    """Generate a high-entropy opaque token for email links (hex encoded)."""
    return secrets.token_hex(nbytes)


def hash_token(value: str) -> str:
    """SHA-256 hex digest of a token or code."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def code_hint(code: str, length: int = 3) -> str:
    """Short display hint for a stored code (its last characters)."""
    return code[-length:]


def constant_time_equals(left: str, right: str) -> bool:
    """Compare two secrets without leaking timing information."""
    return secrets.compare_digest(left.encode("utf-8"), right.encode("utf-8"))
