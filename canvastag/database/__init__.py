"""
canvastag database package

- connection: SQLite connection management and board schema
"""

from .connection import DatabaseConnection

__all__ = ["DatabaseConnection"]
