"""
utils/validation_utils.py

Purpose: Input validation

- Phone number lookup queries
- Integer parsing for admin wizard input and referral payloads
"""

import re
from typing import Optional

LOOKUP_QUERY_PATTERN = re.compile(r"^[0-9]{10,}$")
INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")

# MongoDB stores integers as signed 64-bit values
MIN_STORED_INT = -(2 ** 63)
MAX_STORED_INT = 2 ** 63 - 1


def normalize_lookup_query(text: Optional[str]) -> Optional[str]:
    """
    Normalizes a phone number lookup query.
    
    Args:
        text: Raw message text
    
    Returns:
        The trimmed query if it is 10 or more ASCII digits, None otherwise
    """
    if not text:
        return None
    
    query = text.strip()
    if not LOOKUP_QUERY_PATTERN.match(query):
        return None
    
    return query


def parse_int(text: Optional[str]) -> Optional[int]:
    """
    Parses a whole message as an integer that fits in a stored document.
    
    Returns:
        The integer, or None for empty, non-numeric or out-of-range input
    """
    if not text:
        return None
    
    text = text.strip()
    if not INTEGER_PATTERN.match(text):
        return None
    
    value = int(text)
    if value < MIN_STORED_INT or value > MAX_STORED_INT:
        return None
    return value


def parse_positive_int(text: Optional[str]) -> Optional[int]:
    """Parses a strictly positive integer, None otherwise."""
    value = parse_int(text)
    if value is None or value <= 0:
        return None
    return value
