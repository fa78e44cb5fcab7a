"""HTTP adapter for the menu import service."""

from .app import create_app

__all__ = ["create_app"]
