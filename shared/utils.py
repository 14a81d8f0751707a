"""Shared utility functions for the Store Survey application.

Helpers used by both the domain core in ``shared`` and the Flask backend:
document ids, timestamp parsing and formatting, and id lookups.
"""

import logging
import secrets
import string
from datetime import datetime, date
from functools import lru_cache
from shared.models import APP_TIMEZONE, now

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_letters + string.digits
ID_LENGTH = 20


def generate_id():
    """Generate a random 20 character alphanumeric document id."""
    return ''.join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def generate_token():
    """Generate an opaque bearer token for a login session."""
    return secrets.token_urlsafe(32)


@lru_cache(maxsize=1024)
def parse_timestamp(value):
    """Parse an ISO-8601 timestamp into an aware datetime in application time.

    Naive timestamps are treated as application time. Returns None for empty
    or unparseable values.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Unparseable timestamp '{value}'")
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=APP_TIMEZONE)
    return parsed.astimezone(APP_TIMEZONE)


def format_local_date(value):
    """Format a timestamp as an Indonesian short date (D/M/YYYY)."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ''
    return f"{parsed.day}/{parsed.month}/{parsed.year}"


def export_file_name(extension, today=None):
    """Return the download name for an analytics export, e.g. survey-analytics-2024-05-01.xlsx."""
    today = today or now().date()
    if isinstance(today, datetime):
        today = today.date()
    if not isinstance(today, date):
        raise TypeError("today must be a date")
    return f"survey-analytics-{today.isoformat()}.{extension}"


def index_by_id(entities):
    """Build an id -> entity lookup from a list of models."""
    return {entity.id: entity for entity in entities}
