"""Location localization - Pure functions.

Upstream location strings are English (USGS) or mixed Thai/English (TMD).
The display layer expects Thai names, so recognized countries are replaced
by their Thai equivalent.
"""

import re


# Shown when no usable location could be derived
UNSPECIFIED_LOCATION = "ไม่ระบุสถานที่"

HOME_COUNTRY_LABEL = "ประเทศไทย"

# TMD titles for foreign events start with "ประเทศ" ("country")
COUNTRY_MARKER = "ประเทศ"

# TMD titles for domestic events name a province as "จ. <name>"
PROVINCE_MARKER = "จ."

# Checked in order; multi-word names come before any name they contain
COUNTRY_NAMES: tuple[tuple[str, str], ...] = (
    ("South Korea", "ประเทศเกาหลีใต้"),
    ("North Korea", "ประเทศเกาหลีเหนือ"),
    ("Sri Lanka", "ประเทศศรีลังกา"),
    ("Myanmar", "ประเทศเมียนมา"),
    ("Indonesia", "ประเทศอินโดนีเซีย"),
    ("Philippines", "ประเทศฟิลิปปินส์"),
    ("Japan", "ประเทศญี่ปุ่น"),
    ("China", "ประเทศจีน"),
    ("India", "ประเทศอินเดีย"),
    ("Thailand", "ประเทศไทย"),
    ("Malaysia", "ประเทศมาเลเซีย"),
    ("Singapore", "ประเทศสิงคโปร์"),
    ("Vietnam", "ประเทศเวียดนาม"),
    ("Laos", "ประเทศลาว"),
    ("Cambodia", "ประเทศกัมพูชา"),
    ("Taiwan", "ประเทศไต้หวัน"),
    ("Nepal", "ประเทศเนปาล"),
    ("Bangladesh", "ประเทศบังกลาเทศ"),
)

_COUNTRY_PATTERNS = tuple(
    (re.compile(rf"\b{re.escape(english)}\b", re.IGNORECASE), thai)
    for english, thai in COUNTRY_NAMES
)

_PARENTHETICAL_RE = re.compile(r"\s*\([^)]*\)")


def strip_parentheticals(text: str) -> str:
    """Remove "(...)" annotations, e.g. English names after Thai ones.

    Pure function.
    """
    return _PARENTHETICAL_RE.sub("", text).strip()


def lookup_country(text: str) -> str | None:
    """Find the Thai name of the first country mentioned in text.

    Pure function. Matches whole words only, so "Indian Ocean" is not India.

    Returns:
        Thai country name, or None if no known country appears
    """
    for pattern, thai in _COUNTRY_PATTERNS:
        if pattern.search(text):
            return thai
    return None


def localize_agency_title(title: str | None) -> str:
    """Derive a display location from a TMD feed item title.

    Pure function.

    - Titles naming a country keep their Thai text, annotations removed.
    - Titles naming a Thai province are prefixed with the home country.
    - Anything else goes through the country table, falling back to the
      cleaned title itself.

    Args:
        title: Raw item title

    Returns:
        Localized location, UNSPECIFIED_LOCATION if nothing is left
    """
    if not title:
        return UNSPECIFIED_LOCATION

    cleaned = strip_parentheticals(title)

    if COUNTRY_MARKER in title:
        return cleaned or UNSPECIFIED_LOCATION

    if PROVINCE_MARKER in title:
        return f"{HOME_COUNTRY_LABEL} - {cleaned}" if cleaned else HOME_COUNTRY_LABEL

    return lookup_country(cleaned) or cleaned or UNSPECIFIED_LOCATION


def localize_global_place(place: str | None) -> str:
    """Derive a display location from a USGS place string.

    Pure function. Only recognized countries are shown; the English place
    text itself is never passed through.
    """
    if not place:
        return UNSPECIFIED_LOCATION

    return lookup_country(place) or UNSPECIFIED_LOCATION
