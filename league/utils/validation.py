"""
Input normalisation and validation shared by the operations layer.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

from league.config import Config
from league.constants import ValidationConstants
from league.utils.exceptions import InvalidCategory, InvalidScore, ValidationError

_WHITESPACE = re.compile(r'\s+')


def normalize_text(value: Optional[str]) -> Optional[str]:
    """Trim and collapse internal whitespace; None stays None"""
    if value is None:
        return None
    return _WHITESPACE.sub(' ', str(value)).strip()


def is_strict_int(value: Any) -> bool:
    """True for ints, False for bools and everything else"""
    return isinstance(value, int) and not isinstance(value, bool)


def is_storable_int(value: Any) -> bool:
    """A strict int that fits a signed 64-bit INTEGER column"""
    return is_strict_int(value) and abs(value) <= ValidationConstants.MAX_INT


def normalize_category(category: Optional[str]) -> str:
    """
    Normalise a category key and apply the configured category policy.

    Categories are opaque strings unless Config.VALIDATE_CATEGORIES is on,
    in which case they must be one of Config.get_allowed_categories().

    Raises:
        InvalidCategory: If the category is empty, too long or not allowed
    """
    cleaned = normalize_text(category)
    if not cleaned or len(cleaned) > ValidationConstants.CATEGORY_MAX_LENGTH:
        raise InvalidCategory(category)

    if Config.VALIDATE_CATEGORIES:
        allowed = Config.get_allowed_categories()
        if cleaned not in allowed:
            raise InvalidCategory(category, allowed)

    return cleaned


def validate_score(score: Any) -> int:
    """Scores are non-negative integers"""
    if not is_strict_int(score):
        raise InvalidScore(score, "Scores must be whole numbers.")
    if score < 0:
        raise InvalidScore(score, "Scores cannot be negative.")
    if score > ValidationConstants.MAX_INT:
        raise InvalidScore(score, "Score is too large.")
    return score


def parse_date(value: Any, field_name: str) -> Optional[date]:
    """Accept a date, a datetime or an ISO 'YYYY-MM-DD' string"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError(
        f"Invalid {field_name}: {value!r}",
        f"Invalid {field_name.replace('_', ' ')}. Use YYYY-MM-DD."
    )
