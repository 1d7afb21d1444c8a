"""Value-object parsers for the teamboard domain.

Each ``create_*`` function turns a raw primitive into a branded value or
raises the matching ValidationError subclass. The branded string types are
distinct ``str`` subclasses so a validated ``Name`` cannot be confused with an
arbitrary string at type-check time, while still serializing as plain text.

All parsers are pure apart from ``create_id()`` with no argument, which mints
a fresh ULID with python-ulid.
"""

import os
import re
import time
from enum import Enum
from typing import NewType

from ulid import ULID

from .errors import (
    InvalidBodyError,
    InvalidEmailError,
    InvalidEnrollmentStatusError,
    InvalidIdError,
    InvalidIsDoneError,
    InvalidNameError,
    InvalidProgressStatusError,
    InvalidTeamNameError,
    InvalidTitleError,
)


class _Branded(str):
    """Base for validated string values. Only the parsers construct these."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str.__repr__(self)})"


class Id(_Branded):
    __slots__ = ()


class Name(_Branded):
    __slots__ = ()


class TeamName(_Branded):
    __slots__ = ()


class Email(_Branded):
    __slots__ = ()


class Title(_Branded):
    __slots__ = ()


class Body(_Branded):
    __slots__ = ()


IsDone = NewType("IsDone", bool)


class EnrollmentStatus(str, Enum):
    """Membership state of a participant."""

    ENROLLED = "在籍中"
    ON_LEAVE = "休会中"
    WITHDRAWN = "退会済"


class ProgressStatus(str, Enum):
    """Progress of a participant on an assigned task."""

    NOT_STARTED = "未着手"
    IN_PROGRESS = "取組中"
    AWAITING_REVIEW = "レビュー待ち"
    DONE = "完了"


# ============================================================================
# Id (ULID)
# ============================================================================

ULID_PATTERN = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$", re.IGNORECASE)

# A leading character above 7 would need more than the 48 timestamp bits.
_MAX_LEADING_CHAR = "7"


def generate_ulid(timestamp_ms: int | None = None, randomness: bytes | None = None) -> str:
    """Mint a ULID, optionally from a fixed millisecond timestamp and 10 random bytes."""
    if timestamp_ms is None and randomness is None:
        return str(ULID())
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    if randomness is None:
        randomness = os.urandom(10)
    return str(ULID.from_bytes(timestamp_ms.to_bytes(6, "big") + randomness))


def create_id(value: str | None = None) -> Id:
    """Validate a ULID, or mint a new one when no value is given.

    Raises:
        InvalidIdError: If the value is not a 26-character ULID with a valid
            embedded timestamp.
    """
    if value is None:
        return parse_id(generate_ulid())
    return parse_id(value)


def parse_id(value: str) -> Id:
    """Validate a supplied ULID. Unlike create_id, None is rejected."""
    if not isinstance(value, str) or not ULID_PATTERN.match(value):
        raise InvalidIdError(value)
    if value[0] > _MAX_LEADING_CHAR:
        raise InvalidIdError(value)
    try:
        ULID.from_str(value.upper())
    except ValueError as e:
        raise InvalidIdError(value) from e
    return Id(value)


# ============================================================================
# Names
# ============================================================================

# Latin letters, digits, hiragana, katakana (with prolonged sound mark) and kanji
NAME_PATTERN = re.compile(r"^[a-zA-Z0-9ぁ-んァ-ヶー一-龠々]+$")
NAME_MAX_LENGTH = 100


def _is_valid_name(value: object) -> bool:
    return (
        isinstance(value, str)
        and 1 <= len(value) <= NAME_MAX_LENGTH
        and NAME_PATTERN.match(value) is not None
    )


def create_name(value: str) -> Name:
    """Validate a participant or team name."""
    if not _is_valid_name(value):
        raise InvalidNameError(value)
    return Name(value)


def create_team_name(value: str) -> TeamName:
    """Validate a team name. Same character class as ``create_name``."""
    if not _is_valid_name(value):
        raise InvalidTeamNameError(value)
    return TeamName(value)


# ============================================================================
# Email
# ============================================================================

EMAIL_PATTERN = re.compile(
    r"^(?!\.)(?!.*\.\.)[A-Za-z0-9._%+'-]+(?<!\.)"
    r"@(?:[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?\.)+[A-Za-z]{2,}$"
)


def create_email(value: str) -> Email:
    """Validate an email address shape (``local@domain.tld``)."""
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value):
        raise InvalidEmailError(value)
    return Email(value)


# ============================================================================
# Task fields
# ============================================================================

TITLE_MAX_LENGTH = 100


def create_title(value: str) -> Title:
    """Validate a task title: 1 to 100 characters."""
    if not isinstance(value, str) or not 1 <= len(value) <= TITLE_MAX_LENGTH:
        raise InvalidTitleError(value)
    return Title(value)


def create_body(value: str) -> Body:
    """Accept any string as a task body, including the empty string."""
    if not isinstance(value, str):
        raise InvalidBodyError(value)
    return Body(value)


def create_is_done(value: bool) -> IsDone:
    if not isinstance(value, bool):
        raise InvalidIsDoneError(value)
    return IsDone(value)


# ============================================================================
# Enums
# ============================================================================


def create_enrollment_status(value: str) -> EnrollmentStatus:
    """Exact match against the closed set; no normalization."""
    if isinstance(value, EnrollmentStatus):
        return value
    try:
        return EnrollmentStatus(value)
    except ValueError:
        raise InvalidEnrollmentStatusError(value) from None


def create_progress_status(value: str) -> ProgressStatus:
    """Exact match against the closed set; no normalization."""
    if isinstance(value, ProgressStatus):
        return value
    try:
        return ProgressStatus(value)
    except ValueError:
        raise InvalidProgressStatusError(value) from None
