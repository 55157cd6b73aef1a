"""
Repository layer initialization module.

Usage:
    from mobile_post_office.repositories import PostRepository
"""

from .base_repository import BaseRepository
from .post_repository import PostRepository

__all__ = [
    "BaseRepository",
    "PostRepository",
]
