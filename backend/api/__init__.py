"""
Prompt generator API package.

Provides the FastAPI application for accounts, tiers and subscriptions.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
