"""
Signup input policy.
"""

from typing import Iterable, Optional


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address."""
    return email.strip().lower()


def disposable_domain(email: str, blocked_domains: Iterable[str]) -> Optional[str]:
    """
    Return the email's domain if it is on the disposable list.

    Subdomains of a listed domain are blocked too.
    """
    domain = normalize_email(email).rsplit("@", 1)[-1]
    for blocked in blocked_domains:
        blocked = blocked.lower()
        if domain == blocked or domain.endswith(f".{blocked}"):
            return domain
    return None
