"""
Email message model.
"""

from pydantic import BaseModel, EmailStr


class EmailMessage(BaseModel):
    """A rendered outbound email."""

    to_email: EmailStr
    subject: str
    body: str
    category: str = "transactional"
