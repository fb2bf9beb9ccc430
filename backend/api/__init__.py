"""
FamilyHub API package.

Provides the FastAPI application for FamilyHub authentication and families.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
