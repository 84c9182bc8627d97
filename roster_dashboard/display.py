"""Pure helpers that turn row values into display tags and labels."""

from __future__ import annotations

from typing import Mapping, Optional

from .config import (
    CATEGORY_COLUMN,
    CATEGORY_TAGS,
    COMMAND_CATEGORIES,
    FULL_NAME_COLUMN,
    GIVEN_NAME_COLUMN,
    PATRONYMIC_COLUMN,
    STATUS_TAGS,
    SURNAME_COLUMN,
    VACANT_MARKER,
)
from .grouping import LEADING_INT_RE


def _normalized(value: Optional[str]) -> str:
    return (value or "").lower().strip()


def classify(row: Mapping[str, str]) -> str:
    """Return the card category tag for ``row``."""

    if _normalized(row.get(SURNAME_COLUMN)) == VACANT_MARKER:
        return "vacant"
    return CATEGORY_TAGS.get(_normalized(row.get(CATEGORY_COLUMN)), "default")


def callsign_tag(row: Mapping[str, str]) -> str:
    if _normalized(row.get(SURNAME_COLUMN)) == VACANT_MARKER:
        return "vacant"
    if _normalized(row.get(CATEGORY_COLUMN)) in COMMAND_CATEGORIES:
        return "command"
    return "default"


def status_tag(status: Optional[str]) -> str:
    return STATUS_TAGS.get(_normalized(status), "other")


def display_name(row: Mapping[str, str]) -> str:
    surname = row.get(SURNAME_COLUMN) or row.get(FULL_NAME_COLUMN) or "Без фамилии"
    parts = [surname, row.get(GIVEN_NAME_COLUMN) or "", row.get(PATRONYMIC_COLUMN) or ""]
    return " ".join(part.strip() for part in parts if part and part.strip())


def age_label(value: Optional[str]) -> str:
    """Format an age with the Russian year declension (``год``/``года``/``лет``)."""

    if not value or not value.strip() or value == "--":
        return "--"
    match = LEADING_INT_RE.match(value)
    if match is None:
        return value
    age = int(match.group(1))

    last_digit = abs(age) % 10
    last_two = abs(age) % 100
    if 11 <= last_two <= 14:
        suffix = "лет"
    elif last_digit == 1:
        suffix = "год"
    elif 2 <= last_digit <= 4:
        suffix = "года"
    else:
        suffix = "лет"
    return f"{age} {suffix}"


def detail_title(row: Optional[Mapping[str, str]]) -> str:
    if row is None:
        return "Детали"
    return row.get(SURNAME_COLUMN) or row.get("Name") or row.get(FULL_NAME_COLUMN) or "Карточка"
