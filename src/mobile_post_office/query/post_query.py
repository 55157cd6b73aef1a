"""
Query builder for post listings.

`PostQuery` holds the validated listing parameters. `build_filters()` turns
them into one list of SQL predicates which is shared by the count query and
the page query, so `total` always describes the same row set that is paged.
"""

import math
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from mobile_post_office.exceptions import InvalidLangValueError, InvalidParameterFormatError
from mobile_post_office.models import Post
from mobile_post_office.models.language import LangSelector, Language, TextGroup, group_columns, variant_column

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 200

SORT_FIELDS = ("id", "seq", "district", "openHour", "closeHour", "name")
SORT_DIRECTIONS = ("asc", "desc")

SEARCH_GROUPS = (TextGroup.NAME, TextGroup.LOCATION, TextGroup.ADDRESS)


def parse_lang(value: Any) -> LangSelector:
    """Coerce a raw `lang` value into a LangSelector. None or "" means the default (en); matching is case-sensitive."""
    if value is None or value == "":
        return LangSelector.EN
    if isinstance(value, LangSelector):
        return value
    try:
        return LangSelector(str(value))
    except ValueError:
        raise InvalidLangValueError("lang must be one of: en, tc, sc, all") from None


@dataclass
class PostQuery:
    """Listing parameters, validated on construction."""

    search: str | None = None
    district: str | None = None
    day_of_week: int | None = None
    open_at: str | None = None
    mobile_code: str | None = None
    seq: int | None = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = "id"
    sort_dir: str = "asc"
    lang: LangSelector = field(default=LangSelector.EN)

    def __post_init__(self):
        self.lang = parse_lang(self.lang)

        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise InvalidParameterFormatError("page must be an integer >= 1", fields=["page"])
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or not 1 <= self.limit <= MAX_LIMIT:
            raise InvalidParameterFormatError(f"limit must be an integer between 1 and {MAX_LIMIT}",
                                              fields=["limit"])
        if self.day_of_week is not None and not 1 <= self.day_of_week <= 7:
            raise InvalidParameterFormatError("dayOfWeek must be between 1 and 7", fields=["dayOfWeek"])
        if self.sort_by not in SORT_FIELDS:
            raise InvalidParameterFormatError(f"sortBy must be one of {', '.join(SORT_FIELDS)}",
                                              fields=["sortBy"])
        self.sort_dir = str(self.sort_dir).lower()
        if self.sort_dir not in SORT_DIRECTIONS:
            raise InvalidParameterFormatError("sortDir must be asc or desc", fields=["sortDir"])

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _contains_any(columns: list[str], term: str) -> ColumnElement[bool]:
    # autoescape: '%' and '_' in the user's term match literally
    return or_(*(getattr(Post, column).icontains(term, autoescape=True) for column in columns))


def build_filters(query: PostQuery) -> list[ColumnElement[bool]]:
    """
    Translate the listing parameters into SQL predicates (AND-combined by the caller).

    Empty strings are treated as "not supplied" for the free-text filters.
    """
    filters: list[ColumnElement[bool]] = []

    if query.search:
        columns = [column for group in SEARCH_GROUPS for column in group_columns(group)]
        filters.append(_contains_any(columns, query.search))

    if query.district:
        filters.append(_contains_any(group_columns(TextGroup.DISTRICT), query.district))

    if query.day_of_week is not None:
        filters.append(Post.day_of_week_code == query.day_of_week)

    if query.open_at:
        # HH:MM is zero-padded, so string comparison is time comparison
        filters.append(Post.open_hour <= query.open_at)
        filters.append(Post.close_hour > query.open_at)

    if query.mobile_code:
        filters.append(Post.mobile_code == query.mobile_code)

    if query.seq is not None:
        filters.append(Post.seq == query.seq)

    return filters


def resolve_sort_column(sort_by: str, lang: LangSelector):
    """
    Map a sort key to a column.

    district/name sort by the variant of the requested language (EN for `all`);
    unknown keys fall back to id.
    """
    language = lang.language or Language.EN

    if sort_by == "seq":
        return Post.seq
    if sort_by == "openHour":
        return Post.open_hour
    if sort_by == "closeHour":
        return Post.close_hour
    if sort_by == "district":
        return getattr(Post, variant_column(TextGroup.DISTRICT, language))
    if sort_by == "name":
        return getattr(Post, variant_column(TextGroup.NAME, language))
    return Post.id


def build_count_statement(query: PostQuery) -> Select:
    return select(func.count()).select_from(Post).where(*build_filters(query))


def build_page_statement(query: PostQuery) -> Select:
    column = resolve_sort_column(query.sort_by, query.lang)
    ordering = [column.desc() if query.sort_dir == "desc" else column.asc()]
    if column is not Post.id:
        ordering.append(Post.id.asc())  # tie-breaker keeps pages stable

    return (
        select(Post)
        .where(*build_filters(query))
        .order_by(*ordering)
        .offset(query.offset)
        .limit(query.limit)
    )


@dataclass(frozen=True)
class PageMeta:
    page: int
    limit: int
    total: int
    lang: LangSelector

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "lang": self.lang.value,
        }
