"""HTTP API for the LAS Alias Manager."""

from .app import create_app, get_manager

__all__ = ["create_app", "get_manager"]
