"""
Free-text location parsing.

Turns strings like "Austin, TX", "Sacramento, California 95814" or a bare
street address into structured jurisdiction components. This is a
heuristic, not geocoding: full state names are matched as substrings in a
fixed table order and the first hit wins, so "Washington, DC" resolves to
the state of Washington and "Charleston, West Virginia" resolves to
Virginia (the table is alphabetical). Callers treat an invalid parse as
"no location boost", never as an error.
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional, List, Tuple


# Ordered scan table, first substring match wins
STATE_NAMES: List[Tuple[str, str]] = [
    ("alabama", "AL"), ("alaska", "AK"), ("arizona", "AZ"), ("arkansas", "AR"),
    ("california", "CA"), ("colorado", "CO"), ("connecticut", "CT"), ("delaware", "DE"),
    ("florida", "FL"), ("georgia", "GA"), ("hawaii", "HI"), ("idaho", "ID"),
    ("illinois", "IL"), ("indiana", "IN"), ("iowa", "IA"), ("kansas", "KS"),
    ("kentucky", "KY"), ("louisiana", "LA"), ("maine", "ME"), ("maryland", "MD"),
    ("massachusetts", "MA"), ("michigan", "MI"), ("minnesota", "MN"), ("mississippi", "MS"),
    ("missouri", "MO"), ("montana", "MT"), ("nebraska", "NE"), ("nevada", "NV"),
    ("new hampshire", "NH"), ("new jersey", "NJ"), ("new mexico", "NM"), ("new york", "NY"),
    ("north carolina", "NC"), ("north dakota", "ND"), ("ohio", "OH"), ("oklahoma", "OK"),
    ("oregon", "OR"), ("pennsylvania", "PA"), ("rhode island", "RI"), ("south carolina", "SC"),
    ("south dakota", "SD"), ("tennessee", "TN"), ("texas", "TX"), ("utah", "UT"),
    ("vermont", "VT"), ("virginia", "VA"), ("washington", "WA"), ("west virginia", "WV"),
    ("wisconsin", "WI"), ("wyoming", "WY"),
]

STATE_CODE_TO_NAME: Dict[str, str] = {
    code: name.title() for name, code in STATE_NAMES
}


_STATE_CODE_RE = re.compile(
    r"\b(" + "|".join(code for _, code in STATE_NAMES) + r")\b",
    re.IGNORECASE,
)
_ZIP_RE = re.compile(r"\b(\d{5}(?:-\d{4})?)\b")
_COUNTY_RE = re.compile(r"([A-Za-z][A-Za-z .'-]*?)\s+County\b", re.IGNORECASE)

MAJOR_CITIES = (
    "new york", "los angeles", "chicago", "houston", "phoenix", "philadelphia",
    "san antonio", "san diego", "dallas", "san jose", "austin", "jacksonville",
    "fort worth", "columbus", "charlotte", "san francisco", "indianapolis",
    "seattle", "denver", "washington", "boston", "el paso", "detroit",
    "nashville", "portland", "memphis", "oklahoma city", "las vegas",
    "louisville", "baltimore", "milwaukee", "albuquerque", "tucson",
    "fresno", "mesa", "sacramento", "atlanta", "kansas city", "colorado springs",
    "omaha", "raleigh", "miami", "long beach", "virginia beach", "oakland",
    "minneapolis", "tulsa", "tampa", "new orleans", "wichita", "cleveland",
)

STATE_CAPITALS: Dict[str, str] = {
    "AL": "montgomery", "AK": "juneau", "AZ": "phoenix", "AR": "little rock",
    "CA": "sacramento", "CO": "denver", "CT": "hartford", "DE": "dover",
    "FL": "tallahassee", "GA": "atlanta", "HI": "honolulu", "ID": "boise",
    "IL": "springfield", "IN": "indianapolis", "IA": "des moines", "KS": "topeka",
    "KY": "frankfort", "LA": "baton rouge", "ME": "augusta", "MD": "annapolis",
    "MA": "boston", "MI": "lansing", "MN": "saint paul", "MS": "jackson",
    "MO": "jefferson city", "MT": "helena", "NE": "lincoln", "NV": "carson city",
    "NH": "concord", "NJ": "trenton", "NM": "santa fe", "NY": "albany",
    "NC": "raleigh", "ND": "bismarck", "OH": "columbus", "OK": "oklahoma city",
    "OR": "salem", "PA": "harrisburg", "RI": "providence", "SC": "columbia",
    "SD": "pierre", "TN": "nashville", "TX": "austin", "UT": "salt lake city",
    "VT": "montpelier", "VA": "richmond", "WA": "olympia", "WV": "charleston",
    "WI": "madison", "WY": "cheyenne",
}


@dataclass(frozen=True)
class ParsedLocation:
    """
    Structured result of parsing a location string.
    """
    city: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    zip_code: Optional[str] = None
    full_location: Optional[str] = None
    is_valid: bool = False


def state_name_for(code: Optional[str]) -> Optional[str]:
    """Full state name for a 2-letter code, or the input when unknown."""
    if not code:
        return None
    return STATE_CODE_TO_NAME.get(code.upper(), code)


def _find_state(location_lower: str) -> Tuple[Optional[str], int]:
    """
    Returns (state_code, index of the matched token) or (None, -1).
    """
    for name, code in STATE_NAMES:
        idx = location_lower.find(name)
        if idx != -1:
            return code, idx

    match = _STATE_CODE_RE.search(location_lower)
    if match:
        return match.group(1).upper(), match.start()

    return None, -1


def parse_location(location: Optional[str]) -> ParsedLocation:
    """
    Parse a free-text location. Never raises; unparseable input yields a
    ParsedLocation with is_valid=False.
    """
    if not location or not location.strip():
        return ParsedLocation()

    text = location.strip()
    lowered = text.lower()

    zip_match = _ZIP_RE.search(text)
    zip_code = zip_match.group(1) if zip_match else None

    state_code, state_idx = _find_state(lowered)

    if state_code:
        city = text[:state_idx].strip().rstrip(",").strip() or None
    else:
        city = text.split(",")[0].strip() or None

    county_match = _COUNTY_RE.search(text)
    county = county_match.group(1).strip() if county_match else None

    return ParsedLocation(
        city=city,
        county=county,
        state=state_name_for(state_code),
        state_code=state_code,
        zip_code=zip_code,
        full_location=text,
        is_valid=state_code is not None,
    )


def is_state_capital(city: Optional[str], state_code: Optional[str]) -> bool:
    if not city or not state_code:
        return False
    return STATE_CAPITALS.get(state_code.upper()) == city.strip().lower()


def location_type(parsed: ParsedLocation) -> str:
    """Rough urban/suburban classification used for prompt context."""
    if not parsed.city:
        return "unknown"

    city = parsed.city.lower()
    if any(major in city for major in MAJOR_CITIES):
        return "urban"

    return "suburban"


def format_for_display(parsed: ParsedLocation) -> str:
    if not parsed.is_valid:
        return parsed.full_location or "Unknown Location"

    parts = [p for p in (parsed.city, parsed.state) if p]
    return ", ".join(parts) or (parsed.full_location or "Unknown Location")

