"""
Discovery HTTP API.
"""
from .app import create_app
from .discovery import router

__all__ = [
    "create_app",
    "router",
]
