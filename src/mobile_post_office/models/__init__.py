"""
Centralized access to the database models and the language tables they rely on.

    from mobile_post_office.models import Post, Language, LangSelector, TextGroup
"""

from .post import Post
from .language import Language, LangSelector, TextGroup, VARIANT_COLUMNS, VARIANT_WIRE_NAMES

__all__ = [
    "Post",
    "Language",
    "LangSelector",
    "TextGroup",
    "VARIANT_COLUMNS",
    "VARIANT_WIRE_NAMES",
]
