"""
Field Normalizer
================
Pure helpers that turn scraped free text into a phone number and a
day-of-week index (0 = Sunday ... 6 = Saturday).
"""
import re
from datetime import date, datetime


PHONE_RUN_PATTERN = re.compile(r'[\d\s\-()]+')

# Optional label, then a digit followed by 8+ digits/spaces/hyphens/parentheses
PHONE_SHAPED_PATTERN = re.compile(
    r'(?:t[ée]l[ée]phone|t[ée]l|phone)?[\s:]*(\d[\d\s\-()]{8,})',
    re.IGNORECASE
)

DATE_PATTERN = re.compile(r'(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})')

# Scan order matters: the first name found in this order wins
DAY_NAMES = {
    'dimanche': 0,
    'lundi': 1,
    'mardi': 2,
    'mercredi': 3,
    'jeudi': 4,
    'vendredi': 5,
    'samedi': 6,
    'sunday': 0,
    'monday': 1,
    'tuesday': 2,
    'wednesday': 3,
    'thursday': 4,
    'friday': 5,
    'saturday': 6,
}


def current_day(moment=None):
    """Sunday-based day index of `moment` (defaults to now)."""
    if moment is None:
        moment = datetime.now()
    return (moment.weekday() + 1) % 7


def find_phone(text):
    """
    Return the phone-shaped substring of `text`, or '' if there is none.
    A leading 'Tel:'/'Téléphone' label is not part of the result.
    """
    if not text:
        return ''
    match = PHONE_SHAPED_PATTERN.search(text)
    return match.group(1) if match else ''


def normalize_phone(text):
    """
    Keep the first run of digits, spaces, hyphens and parentheses.
    Runs made only of whitespace are skipped. Falls back to the trimmed
    input when there is no such run.
    """
    if not text:
        return ''
    for match in PHONE_RUN_PATTERN.finditer(text):
        run = match.group(0).strip()
        if run:
            return run
    return text.strip()


def _parse_date(text):
    match = DATE_PATTERN.search(text)
    if not match:
        return None

    day, month, year = (int(part) for part in match.groups())
    if len(match.group(3)) == 2:
        year += 2000

    try:
        return date(year, month, day)
    except ValueError:
        return None


def resolve_day_of_week(text, today):
    """
    Resolve a day index from heterogeneous text.

    Order of precedence:
        1. an explicit D/M/Y date that is a real calendar date
        2. a French or English day name
        3. `today`, meaning "no signal, assume on duty today"

    Never raises.
    """
    if not text:
        return today

    parsed = _parse_date(text)
    if parsed is not None:
        return current_day(parsed)

    lowered = text.lower()
    for day_name, number in DAY_NAMES.items():
        if day_name in lowered:
            return number

    return today
