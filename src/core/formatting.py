"""Shared chat message formatting helpers.

Keeping formatting here prevents drift between command replies and
announcements and keeps every user-visible string in one place.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence

from core.models import Code

MULTIPLIERS = (2, 3, 4, 5, 6, 7, 8, 9, 10, 25, 50, 100)


def format_code(code: Code, base_url: str) -> str:
    return f"{code.description} ({code.code_type}) {base_url}/{code.key}"


def format_codes_reply(codes: Sequence[Code], base_url: str) -> str:
    """Return the reply for a codefall lookup, one segment per entry."""

    parts = ["Codefall"]
    parts.extend(format_code(code, base_url) for code in codes)
    return " | ".join(parts)


def format_no_codes(base_url: str) -> str:
    return f"Could not find any unclaimed codes. Visit {base_url} to add new entries."


def format_announcement(code: Code, base_url: str) -> str:
    """Announcement line broadcast when a new entry shows up."""

    return format_codes_reply([code], base_url)


def format_multiples(amount: Decimal, multipliers: Iterable[int] = MULTIPLIERS) -> str:
    """Return the value table for ``amount``, every value with two decimals."""

    parts = [f"Multiples of ${amount:.2f}"]
    parts.extend(f"${amount * multiplier:.2f}" for multiplier in multipliers)
    return " | ".join(parts)


def format_help(help_url: str) -> str:
    return f"Documentation of all commands is available at {help_url}"


def format_bingo(bingo_url: str) -> str:
    return f"Play along with the stream bingo at {bingo_url}"
