"""Text and date normalization helpers shared by scrapers and dedup."""
import re
import time
import unicodedata
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from bs4 import BeautifulSoup

from processor.categories import CATEGORY_LABELS_NO

SLUG_MAX_LENGTH = 80
DESCRIPTION_MAX_LENGTH = 160

_LETTER_FOLDS = (('æ', 'ae'), ('ø', 'o'), ('å', 'a'))

_YEAR_RE = re.compile(r'\b\d{4}\b')
_CITY_RE = re.compile(r'\b(?:i\s+)?bergen\b')
_NON_ALNUM_RE = re.compile(r'[^a-z0-9]')
_SLUG_SEPARATOR_RE = re.compile(r'[^a-z0-9]+')
_WHITESPACE_RE = re.compile(r'\s+')
_DATE_ONLY_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

# Norwegian month names plus the English abbreviations that differ from them
MONTHS = {
    'jan': 1, 'januar': 1,
    'feb': 2, 'februar': 2,
    'mar': 3, 'mars': 3,
    'apr': 4, 'april': 4,
    'mai': 5, 'may': 5,
    'jun': 6, 'juni': 6,
    'jul': 7, 'juli': 7,
    'aug': 8, 'august': 8,
    'sep': 9, 'september': 9,
    'okt': 10, 'oktober': 10, 'oct': 10,
    'nov': 11, 'november': 11,
    'des': 12, 'desember': 12, 'dec': 12,
}

# (pattern, group order) tried in sequence after the ISO attempt
_DATE_PATTERNS = (
    # "19. feb 2026", "19. februar 2026", "19. feb. 2026"
    (re.compile(r'(\d{1,2})\.\s*([^\W\d_]+)\.?\s*(\d{4})'), ('day', 'month', 'year')),
    # "9 Jan 2026"
    (re.compile(r'(\d{1,2})\s+([^\W\d_]+)\.?\s+(\d{4})'), ('day', 'month', 'year')),
    # "Feb 19, 2026"
    (re.compile(r'([^\W\d_]+)\.?\s+(\d{1,2}),?\s*(\d{4})'), ('month', 'day', 'year')),
    # "19/02/2026", "19.02.2026"
    (re.compile(r'(\d{1,2})[/.](\d{1,2})[/.](\d{4})'), ('day', 'month', 'year')),
)


def _fold(text: str) -> str:
    """Lowercase, strip diacritics and fold the Norwegian letters."""
    text = unicodedata.normalize('NFD', text.lower())
    text = ''.join(ch for ch in text if not unicodedata.combining(ch))
    for letter, replacement in _LETTER_FOLDS:
        text = text.replace(letter, replacement)
    return text


def _fingerprint(text: str) -> str:
    text = _fold(text)
    text = _YEAR_RE.sub('', text)
    text = _CITY_RE.sub('', text)
    return _NON_ALNUM_RE.sub('', text)


def normalize_title(title: str) -> str:
    """
    Reduce a title to a dense alphanumeric fingerprint for comparison.

    "Café Ørjan" becomes "cafeorjan" and "Konsert i Bergen" becomes
    "konsert". The result is a fixed point: normalizing it again returns
    it unchanged.

    Args:
        title: Event title in any language

    Returns:
        Lowercase string of [a-z0-9] characters, possibly empty
    """
    result = _fingerprint(title)
    # Joined fragments ("berg en", "20 26") can form a fresh noise token
    while True:
        again = _fingerprint(result)
        if again == result:
            return result
        result = again


def slugify(text: str) -> str:
    """
    Build a URL slug from free text.

    Args:
        text: Text to slugify

    Returns:
        Hyphen-separated lowercase slug of at most 80 characters
    """
    slug = _SLUG_SEPARATOR_RE.sub('-', _fold(text)).strip('-')
    return slug[:SLUG_MAX_LENGTH]


def _base36(number: int) -> str:
    digits = '0123456789abcdefghijklmnopqrstuvwxyz'
    encoded = ''
    while number:
        number, remainder = divmod(number, 36)
        encoded = digits[remainder] + encoded
    return encoded or '0'


def make_slug(title: str, date_str: Optional[str] = None) -> str:
    """Slug suffixed with the event's UTC date, or a timestamp when unknown."""
    base = slugify(title)
    if date_str:
        parsed = _parse_iso(date_str)
        if parsed:
            return f"{base}-{parsed.date().isoformat()}"
    return f"{base}-{_base36(int(time.time() * 1000))}"


def _parse_iso(text: str) -> Optional[datetime]:
    if text[-1:] in ('Z', 'z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        return parsed.astimezone(timezone.utc)
    if _DATE_ONLY_RE.match(text):
        return parsed.replace(hour=12, tzinfo=timezone.utc)
    # No offset: Bergen wall-clock time
    return datetime.fromisoformat(
        bergen_datetime(parsed.date().isoformat(), parsed.strftime('%H:%M:%S'))
    )


def _month_number(name: str) -> Optional[int]:
    name = name.lower()
    if name in MONTHS:
        return MONTHS[name]
    return MONTHS.get(name[:3])


def parse_norwegian_date(text: str) -> Optional[datetime]:
    """
    Parse a date string in one of the formats used by Bergen sources.

    ISO strings keep their own time; those without an offset are Bergen
    local time. Date-only strings, ISO or not, are pinned to 12:00 UTC,
    which consumers must read as "time unknown".

    Args:
        text: Date string such as "2026-02-19", "19. feb 2026",
            "9 Jan 2026", "Feb 19, 2026" or "19/02/2026"

    Returns:
        Timezone-aware UTC datetime, or None if the string cannot be parsed
    """
    if not text:
        return None
    text = text.strip()

    if '-' in text:
        parsed = _parse_iso(text)
        if parsed:
            return parsed

    for pattern, order in _DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        parts = dict(zip(order, match.groups()))
        if parts['month'].isdigit():
            month = int(parts['month'])
        else:
            month = _month_number(parts['month'])
        if month is None:
            continue
        try:
            return datetime(
                int(parts['year']), month, int(parts['day']), 12, 0, 0,
                tzinfo=timezone.utc
            )
        except ValueError:
            continue

    return None


def _last_sunday(year: int, month: int) -> date:
    """Last Sunday of a 31-day month."""
    last_day = date(year, month, 31)
    return last_day - timedelta(days=(last_day.weekday() + 1) % 7)


def bergen_offset(date_str: str) -> str:
    """
    UTC offset of Europe/Oslo local time on a given calendar date.

    Summer time runs from the last Sunday of March to the last Sunday of
    October (both at 01:00 UTC). The offset is evaluated at local noon, so
    each transition day already reports the new offset.

    Args:
        date_str: Date in YYYY-MM-DD form (anything after the date is ignored)

    Returns:
        "+02:00" during summer time, "+01:00" otherwise
    """
    day = date.fromisoformat(date_str[:10])
    if _last_sunday(day.year, 3) <= day < _last_sunday(day.year, 10):
        return '+02:00'
    return '+01:00'


def to_utc_iso(value: datetime) -> str:
    """Format an aware datetime as the UTC ISO string used in storage."""
    return value.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def bergen_datetime(date_str: str, time_str: str = '12:00') -> str:
    """Convert a Bergen local date and HH:MM[:SS] time to a UTC ISO string."""
    local = datetime.fromisoformat(
        f"{date_str[:10]}T{time_str}{bergen_offset(date_str)}"
    )
    return to_utc_iso(local)


def strip_html(html: str) -> str:
    """Remove markup, decode entities and collapse whitespace."""
    if not html:
        return ''
    text = BeautifulSoup(html, 'html.parser').get_text()
    return _WHITESPACE_RE.sub(' ', text).strip()


def make_description(title: str, venue: str, category: str) -> str:
    """Norwegian template description used when no real text is available."""
    label = CATEGORY_LABELS_NO.get(category, 'Arrangement')
    return f"{title} — {label} på {venue}"[:DESCRIPTION_MAX_LENGTH]
