"""Web interface for the leave roadmap."""

from .app import create_app

__all__ = ["create_app"]
