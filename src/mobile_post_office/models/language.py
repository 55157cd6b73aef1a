"""
Languages and trilingual text groups.

A Post stores four text groups (name, district, location, address), each in
three variants: English (EN), Traditional Chinese (TC) and Simplified Chinese (SC).

Variant lookup goes through `VARIANT_COLUMNS`, an explicit table keyed by
(TextGroup, Language). Every group has an entry for every language, so adding a
group or a language means extending the table, not building attribute names
from strings.
"""

from enum import Enum


class Language(str, Enum):
    """A concrete language a text variant is stored in."""
    EN = "en"
    TC = "tc"
    SC = "sc"


class LangSelector(str, Enum):
    """Response language selector. ALL returns every variant at once."""
    EN = "en"
    TC = "tc"
    SC = "sc"
    ALL = "all"

    @property
    def language(self) -> Language | None:
        """The concrete language for single-language selectors, None for ALL."""
        if self is LangSelector.ALL:
            return None
        return Language(self.value)


class TextGroup(str, Enum):
    NAME = "name"
    DISTRICT = "district"
    LOCATION = "location"
    ADDRESS = "address"


# (group, language) -> Post attribute name
VARIANT_COLUMNS: dict[TextGroup, dict[Language, str]] = {
    TextGroup.NAME: {
        Language.EN: "name_en",
        Language.TC: "name_tc",
        Language.SC: "name_sc",
    },
    TextGroup.DISTRICT: {
        Language.EN: "district_en",
        Language.TC: "district_tc",
        Language.SC: "district_sc",
    },
    TextGroup.LOCATION: {
        Language.EN: "location_en",
        Language.TC: "location_tc",
        Language.SC: "location_sc",
    },
    TextGroup.ADDRESS: {
        Language.EN: "address_en",
        Language.TC: "address_tc",
        Language.SC: "address_sc",
    },
}

# (group, language) -> wire field name used by API payloads and import feeds
VARIANT_WIRE_NAMES: dict[TextGroup, dict[Language, str]] = {
    TextGroup.NAME: {Language.EN: "nameEN", Language.TC: "nameTC", Language.SC: "nameSC"},
    TextGroup.DISTRICT: {Language.EN: "districtEN", Language.TC: "districtTC", Language.SC: "districtSC"},
    TextGroup.LOCATION: {Language.EN: "locationEN", Language.TC: "locationTC", Language.SC: "locationSC"},
    TextGroup.ADDRESS: {Language.EN: "addressEN", Language.TC: "addressTC", Language.SC: "addressSC"},
}

# Fallback chain for the language-neutral fields of the ALL view
ALL_VIEW_PRIORITY: tuple[Language, ...] = (Language.EN, Language.TC, Language.SC)


def variant_column(group: TextGroup, language: Language) -> str:
    return VARIANT_COLUMNS[group][language]


def group_columns(group: TextGroup) -> list[str]:
    """All three variant attribute names of a group, EN first."""
    return [VARIANT_COLUMNS[group][language] for language in Language]
