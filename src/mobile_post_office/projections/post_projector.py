"""
Language projector: map a stored Post to its response shape for a lang selector.

    lang=all       every variant (nameEN ... addressSC) + convenience fields
                   name/district/location/address = EN, else TC, else SC, else ""
    lang=en|tc|sc  convenience fields only, = requested variant, else EN, else ""

Projection is pure: the same row and selector always give the same output.
"""

from decimal import Decimal
from typing import Any

from mobile_post_office.models import Post
from mobile_post_office.models.language import (
    ALL_VIEW_PRIORITY,
    LangSelector,
    Language,
    TextGroup,
    VARIANT_WIRE_NAMES,
    variant_column,
)


def format_coordinate(value: Decimal | float | None) -> str | None:
    """Fixed 6-decimal string; None when absent or exactly zero."""
    if not value:
        return None
    return f"{Decimal(str(value)):.6f}"


def _first_present(post: Post, group: TextGroup, languages: tuple[Language, ...]) -> str:
    for language in languages:
        value = getattr(post, variant_column(group, language))
        if value:
            return value
    return ""


def project(post: Post, lang: LangSelector = LangSelector.EN) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": post.id,
        "mobileCode": post.mobile_code,
        "seq": post.seq,
    }

    language = lang.language
    for group in TextGroup:
        if language is None:
            for variant, wire in VARIANT_WIRE_NAMES[group].items():
                data[wire] = getattr(post, variant_column(group, variant))
            data[group.value] = _first_present(post, group, ALL_VIEW_PRIORITY)
        else:
            data[group.value] = _first_present(post, group, (language, Language.EN))

    data.update({
        "openHour": post.open_hour,
        "closeHour": post.close_hour,
        "dayOfWeekCode": post.day_of_week_code,
        "latitude": format_coordinate(post.latitude),
        "longitude": format_coordinate(post.longitude),
    })
    return data


def project_many(posts: list[Post], lang: LangSelector = LangSelector.EN) -> list[dict[str, Any]]:
    return [project(post, lang) for post in posts]
