"""Birth/death date normalisation for chronological checks."""

from datetime import date
import re

from models import Member


MONTHS = {
    "JAN": 1,
    "FEB": 2,
    "MAR": 3,
    "APR": 4,
    "MAY": 5,
    "JUN": 6,
    "JUL": 7,
    "AUG": 8,
    "SEP": 9,
    "OCT": 10,
    "NOV": 11,
    "DEC": 12,
}

# Qualifiers that only soften a date ("about 1855", "Abt. 1798", "BEF 1900")
QUALIFIER_RE = re.compile(
    r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|CIRCA|CA\.?|AROUND):?\s*",
    flags=re.IGNORECASE,
)


def _month(name: str) -> int | None:
    return MONTHS.get(name.upper().rstrip(".")[:3])


def _iso(year: int, month: int | None, day: int | None) -> str | None:
    month = month or 1
    day = day or 1
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_date_string(date_str: str | None) -> str | None:
    """
    Normalise a stored date string into ISO format (YYYY-MM-DD).
    Returns None if the date cannot be parsed.

    Handles formats like:
    - "1956-03-14" (and ISO timestamps "1956-03-14T00:00:00Z")
    - "1746-00-00" (unknown month/day)
    - "25 NOV 1954", "08 March 1893", "02 May1838"
    - "NOV 1954", "May, 1837"
    - "April 17, 1850", "Oct.12,1929"
    - "01/27/1920", "01-27-1920" (month first)
    - "1698", "about 1833", "(1789?)"
    """
    if not date_str:
        return None

    s = date_str.strip().strip("()").rstrip("?").strip()
    s = QUALIFIER_RE.sub("", s).strip()
    if not s:
        return None

    match = re.match(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$", s)
    if match:
        return _iso(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = re.match(r"^(\d{4})$", s)
    if match:
        return _iso(int(match.group(1)), None, None)

    # Day month year, with or without a space before the year
    match = re.match(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$", s)
    if match:
        month = _month(match.group(2))
        if month:
            return _iso(int(match.group(3)), month, int(match.group(1)))
        return None

    # Month year
    match = re.match(r"^([A-Za-z]+)\.?,?\s*(\d{4})$", s)
    if match:
        month = _month(match.group(1))
        if month:
            return _iso(int(match.group(2)), month, None)
        return None

    # Month day, year
    match = re.match(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$", s)
    if match:
        month = _month(match.group(1))
        if month:
            return _iso(int(match.group(3)), month, int(match.group(2)))
        return None

    # Numeric, month first
    match = re.match(r"^(\d{1,2})[-/ ](\d{1,2})[-/ ](\d{4})$", s)
    if match:
        return _iso(int(match.group(3)), int(match.group(1)), int(match.group(2)))

    return None


def to_date(date_str: str | None) -> date | None:
    """Parse a stored date string into a date, or None when unparseable."""
    iso = parse_date_string(date_str)
    if iso is None:
        return None
    try:
        return date.fromisoformat(iso)
    except ValueError:
        # e.g. 31 Feb
        return None


def birth_date_of(member: Member) -> date | None:
    return to_date(member.birth_date)


def birth_year_of(member: Member) -> int | None:
    born = birth_date_of(member)
    return born.year if born else None


def years_between(earlier: date, later: date) -> int:
    """Whole calendar years between two dates (negative if reversed)."""
    years = later.year - earlier.year
    if (later.month, later.day) < (earlier.month, earlier.day):
        years -= 1
    return years
