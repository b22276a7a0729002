"""
utils/telegram_utils.py

Purpose: Telegram message builders

- Reply keyboard layout (base menu plus admin rows)
- Lookup record formatting
- Markdown escaping for user-supplied values
"""

import re
from datetime import datetime
from typing import List, Optional

from utils.constants import (
    BASE_MENU,
    ADMIN_MENU,
    RECORD_MESSAGE,
    MISSING_FIELD,
)

ADDRESS_SEPARATOR = "!"
_REPEATED_SEPARATORS = re.compile(re.escape(ADDRESS_SEPARATOR) + "{2,}")
_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def main_menu_keyboard(is_admin: bool) -> List[List[str]]:
    """
    Builds the persistent reply keyboard.
    
    Args:
        is_admin: Whether to append the admin-only rows
    
    Returns:
        Rows of button labels
    """
    rows = [list(row) for row in BASE_MENU]
    if is_admin:
        rows.extend(list(row) for row in ADMIN_MENU)
    return rows


def escape_markdown(text: Optional[str]) -> str:
    """Escapes characters that break Telegram's legacy Markdown."""
    if not text:
        return ""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def format_date(value: datetime) -> str:
    return value.strftime("%d %b %Y")


def format_address(raw: Optional[str]) -> str:
    """
    Turns a "!"-separated address into comma-joined segments.
    
    Example:
        "H NO 12!!MAIN ROAD!DELHI!" -> "H NO 12, MAIN ROAD, DELHI"
    """
    if not raw:
        return MISSING_FIELD
    
    collapsed = _REPEATED_SEPARATORS.sub(ADDRESS_SEPARATOR, raw)
    parts = [part.strip() for part in collapsed.split(ADDRESS_SEPARATOR)]
    parts = [part for part in parts if part]
    
    return ", ".join(parts) if parts else MISSING_FIELD


def _code_value(value: Optional[str]) -> str:
    # Backticks would terminate the inline code span
    if not value:
        return MISSING_FIELD
    return value.replace("`", "'")


def format_record(record, index: int, total: int) -> str:
    """
    Formats one lookup record for display.
    
    Args:
        record: LookupRecord
        index: Zero-based position in the result list
        total: Number of records in the result list
    """
    return RECORD_MESSAGE.format(
        position=index + 1,
        total=total,
        name=_code_value(record.name),
        fname=_code_value(record.fname),
        mobile=_code_value(record.mobile),
        address=_code_value(format_address(record.address)),
        circle=_code_value(record.circle),
    )
