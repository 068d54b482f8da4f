"""
Common utility functions shared across the application.
"""

import urllib.parse
from datetime import datetime
from typing import List, Optional, Tuple, TypeVar

import pytz

from pos_api.common.dates import APP_TZ, ensure_aware

T = TypeVar('T')


def generate_default_avatar(name: str) -> str:
    """
    Generate a default avatar URL using the given name.

    Args:
        name: The name to use for generating the avatar

    Returns:
        str: Default avatar URL
    """
    encoded_name = urllib.parse.quote(name)
    encoded_colors = urllib.parse.quote("b6e3f4,c0aede,d1d4f9")
    return f"https://api.dicebear.com/9.x/initials/png?seed={encoded_name}&backgroundColor={encoded_colors}"


def convert_timestamp(timestamp) -> Optional[str]:
    """Convert Firestore timestamp to ISO format string for JSON serialization."""
    if timestamp is None:
        return None
    if isinstance(timestamp, datetime):
        return ensure_aware(timestamp).astimezone(APP_TZ).isoformat()
    if hasattr(timestamp, 'timestamp'):
        return datetime.fromtimestamp(timestamp.timestamp(), APP_TZ).isoformat()
    return str(timestamp)


_EPOCH = datetime(1970, 1, 1, tzinfo=pytz.utc)


def timestamp_sort_key(value) -> datetime:
    """Sort key for document timestamps; missing values sort as the oldest."""
    if isinstance(value, datetime):
        return ensure_aware(value)
    return _EPOCH


def paginate(items: List[T], page: int, size: int) -> Tuple[List[T], int, int]:
    """
    Slice an already sorted list into one page.

    Returns:
        (page_items, total, pages)
    """
    total = len(items)
    pages = (total + size - 1) // size if size > 0 else 0  # Ceiling division
    start_index = (page - 1) * size
    return items[start_index:start_index + size], total, pages
