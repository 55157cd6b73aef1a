"""
Record normalizer: turn a loosely typed post payload into storage-ready values.

Input payloads come from two places:

- the record API (create / update), where any bad value must reject the call;
- external import feeds, where a few bad rows must not abort a large batch.

Both go through `normalize_post()`, which is run in one of two named modes:

    NormalizeMode.STRICT   bad value -> taxonomy error is raised
    NormalizeMode.LENIENT  bad value -> value cleared + Irregularity recorded

The output is a dict keyed by `Post` attribute names containing only the keys
that were supplied, so it can feed both inserts and partial updates.
"""

import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from mobile_post_office.exceptions import (
    ApiError,
    InvalidNumericValueError,
    InvalidParameterFormatError,
    InvalidTimeFormatError,
    MissingRequiredFieldError,
)
from mobile_post_office.models.language import TextGroup, VARIANT_COLUMNS, VARIANT_WIRE_NAMES, group_columns

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"([01]\d|2[0-3]):[0-5]\d")

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


class NormalizeMode(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(frozen=True)
class Irregularity:
    """A non-fatal data-quality issue found in record number `record` (1-based)."""
    record: int
    issue: str

    def to_dict(self) -> dict:
        return {"record": self.record, "issue": self.issue}


# wire name -> Post attribute
FIELD_ALIASES: dict[str, str] = {
    "mobileCode": "mobile_code",
    "seq": "seq",
    "openHour": "open_hour",
    "closeHour": "close_hour",
    "dayOfWeekCode": "day_of_week_code",
    "latitude": "latitude",
    "longitude": "longitude",
}
for _group in TextGroup:
    for _language, _wire in VARIANT_WIRE_NAMES[_group].items():
        FIELD_ALIASES[_wire] = VARIANT_COLUMNS[_group][_language]

SETTABLE_ATTRIBUTES: frozenset[str] = frozenset(FIELD_ALIASES.values())
WIRE_NAMES: dict[str, str] = {attr: wire for wire, attr in FIELD_ALIASES.items()}


# -----------------------
# Value parsers: return the coerced value or raise ValueError
# -----------------------

def parse_coordinate(raw: Any) -> float:
    """Parse a coordinate given as a number or numeric string into a finite float."""
    if isinstance(raw, bool):
        raise ValueError("boolean is not a coordinate")
    if isinstance(raw, (int, float, Decimal)):
        value = float(raw)
    elif isinstance(raw, str):
        value = float(raw.strip())
    else:
        raise ValueError(f"unsupported coordinate type {type(raw).__name__}")
    if not math.isfinite(value):
        raise ValueError("coordinate is not finite")
    return value


def _parse_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError("boolean is not an integer")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        return int(raw.strip())
    raise ValueError(f"unsupported integer type {type(raw).__name__}")


def _parse_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (int, float, Decimal)) and not isinstance(raw, bool):
        return str(raw)
    raise ValueError(f"unsupported text type {type(raw).__name__}")


def _parse_time(raw: Any) -> str:
    if isinstance(raw, str) and TIME_PATTERN.fullmatch(raw):
        return raw
    raise ValueError("expected HH:MM")


class _Collector:
    """Applies the mode: raise in STRICT, clear + record in LENIENT."""

    def __init__(self, mode: NormalizeMode, index: int | None, irregularities: list[Irregularity] | None):
        self.mode = mode
        self.index = index
        self.irregularities = irregularities if irregularities is not None else []

    def reject(self, error: ApiError, issue: str) -> None:
        if self.mode is NormalizeMode.STRICT:
            raise error
        self.irregularities.append(Irregularity(record=self.index or 0, issue=issue))


def normalize_post(
    data: Mapping[str, Any],
    mode: NormalizeMode = NormalizeMode.STRICT,
    *,
    index: int | None = None,
    irregularities: list[Irregularity] | None = None,
) -> dict[str, Any]:
    """
    Validate and coerce one post payload.

    Args:
        data: any subset of the settable fields, keyed by wire name (`nameEN`)
              or attribute name (`name_en`).
        mode: STRICT (API writes) or LENIENT (batch import).
        index: 1-based position of the record in its batch (LENIENT only, used in irregularities).
        irregularities: list that LENIENT mode appends to.

    Returns:
        dict of Post attribute -> value, only for supplied keys. Values that
        LENIENT mode rejected are present as None (cleared).

    Raises (STRICT only):
        InvalidNumericValueError: bad latitude/longitude/seq/dayOfWeekCode
        InvalidTimeFormatError: bad openHour/closeHour
        InvalidParameterFormatError: unknown field or non-text value for a text field
    """
    collector = _Collector(mode, index, irregularities)
    normalized: dict[str, Any] = {}

    unknown = sorted(key for key in data if key not in FIELD_ALIASES and key not in SETTABLE_ATTRIBUTES)
    if unknown and mode is NormalizeMode.STRICT:
        logger.info("normalizer.unknown_fields", extra={"unknown_fields": unknown})
        raise InvalidParameterFormatError(f"Unknown field(s): {', '.join(unknown)}", fields=unknown)

    for key, raw in data.items():
        attr = FIELD_ALIASES.get(key, key)
        if attr not in SETTABLE_ATTRIBUTES:
            continue  # LENIENT: feeds carry extra properties

        if raw is None:
            normalized[attr] = None
            continue

        wire = WIRE_NAMES[attr]

        if attr in ("latitude", "longitude"):
            low, high = LATITUDE_RANGE if attr == "latitude" else LONGITUDE_RANGE
            try:
                value = parse_coordinate(raw)
            except ValueError:
                value = None
            if value is None or not (low <= value <= high):
                collector.reject(
                    InvalidNumericValueError(f"{attr} must be between {low:g} and {high:g}", fields=[wire]),
                    f"Invalid {attr}: {raw}",
                )
                value = None
            normalized[attr] = value

        elif attr in ("open_hour", "close_hour"):
            try:
                normalized[attr] = _parse_time(raw)
            except ValueError:
                collector.reject(
                    InvalidTimeFormatError(f"{wire} must be in HH:MM format with valid time (00:00-23:59)",
                                           fields=[wire]),
                    f"Invalid {wire}: {raw}",
                )
                normalized[attr] = None

        elif attr in ("seq", "day_of_week_code"):
            low, high = (1, None) if attr == "seq" else (1, 7)
            try:
                value = _parse_int(raw)
            except ValueError:
                value = None
            if value is None or value < low or (high is not None and value > high):
                bound = f"between {low} and {high}" if high is not None else f"an integer >= {low}"
                collector.reject(
                    InvalidNumericValueError(f"{wire} must be {bound}", fields=[wire]),
                    f"Invalid {wire}: {raw}",
                )
                value = None
            normalized[attr] = value

        else:
            try:
                normalized[attr] = _parse_text(raw)
            except ValueError:
                collector.reject(
                    InvalidParameterFormatError(f"{wire} must be a string", fields=[wire]),
                    f"Invalid {wire}: {raw!r}",
                )
                normalized[attr] = None

    return normalized


def _has_any(values: Mapping[str, Any], group: TextGroup) -> bool:
    for column in group_columns(group):
        value = values.get(column)
        if isinstance(value, str) and value.strip():
            return True
    return False


def require_name_and_district(values: Mapping[str, Any]) -> None:
    """
    Creation invariant: at least one name variant AND one district variant.

    `values` must already be normalized (attribute names). Blank strings count as absent.
    """
    missing = [group.value for group in (TextGroup.NAME, TextGroup.DISTRICT) if not _has_any(values, group)]
    if missing:
        raise MissingRequiredFieldError(
            "Missing required field: at least one of nameEN/nameTC/nameSC "
            "and one of districtEN/districtTC/districtSC",
            fields=missing,
        )
