"""Canonical forms for the identifiers clients send us.

None of these raise: an empty result is how callers learn the input was unusable.
"""
from typing import Any

from constants import DEFAULT_DISPLAY_NAME


def _coerce(raw: Any) -> str:
    # Missing, null and falsy values all collapse to ""
    if not raw:
        return ""
    if isinstance(raw, bool):
        return "true"
    return str(raw)


def normalize_room_id(raw: Any) -> str:
    return _coerce(raw).strip().upper()


def normalize_user_id(raw: Any) -> str:
    return _coerce(raw).strip()


def normalize_signal_address(raw: Any) -> str:
    return _coerce(raw).strip()


def normalize_display_name(raw: Any) -> str:
    return _coerce(raw).strip() or DEFAULT_DISPLAY_NAME
