"""
Slot answer validation.

Each SlotType has one validator that takes the raw answer and returns the
normalized value, or raises ValidationError with a human-readable reason.
Validation is purely structural: it never looks at session or catalog state,
so it is synchronous and deterministic.
"""
import logging
import math
import re
from datetime import date

from flows.specs import SlotDefinition, SlotType
from .errors import ValidationError

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$", re.ASCII)
DATETIME_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2})$", re.ASCII)
# ASCII decimal or exponent notation only
NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$", re.ASCII)


# =============================================================================
# CALENDAR HELPERS
# =============================================================================

def _is_real_date(year: int, month: int, day: int) -> bool:
    """
    Check that year/month/day name a real calendar day.

    The components are rebuilt into a date and must round-trip exactly,
    which rejects well-formed but impossible values such as 2024-02-30.
    """
    try:
        rebuilt = date(year, month, day)
    except ValueError:
        return False
    return (rebuilt.year, rebuilt.month, rebuilt.day) == (year, month, day)


# =============================================================================
# PER-TYPE VALIDATORS
# =============================================================================

def validate_string(raw: str) -> str:
    """Any non-blank answer is valid; the value is trimmed."""
    value = (raw or "").strip()
    if not value:
        raise ValidationError("response required")
    return value


def validate_date(raw: str) -> str:
    """
    Validate a calendar date in YYYY-MM-DD form.

    Returns:
        The date string unchanged (surrounding whitespace removed)
    """
    value = (raw or "").strip()
    match = DATE_PATTERN.match(value)
    if not match:
        raise ValidationError("invalid date format, expected YYYY-MM-DD")

    year, month, day = (int(part) for part in match.groups())
    if not _is_real_date(year, month, day):
        raise ValidationError("invalid date")
    return value


def validate_datetime(raw: str) -> str:
    """
    Validate a 24-hour date and time in YYYY-MM-DD HH:MM form.

    Returns:
        The datetime string unchanged (surrounding whitespace removed)
    """
    value = (raw or "").strip()
    match = DATETIME_PATTERN.match(value)
    if not match:
        raise ValidationError("invalid date and time format, expected YYYY-MM-DD HH:MM")

    year, month, day, hour, minute = (int(part) for part in match.groups())
    if not _is_real_date(year, month, day):
        raise ValidationError("invalid date")
    if not 0 <= hour <= 23:
        raise ValidationError("hour out of range")
    if not 0 <= minute <= 59:
        raise ValidationError("minute out of range")
    return value


def validate_number(raw: str) -> str:
    """
    Validate that the answer parses as a finite number.

    The original text is kept; callers convert downstream.
    """
    value = (raw or "").strip()
    if not NUMBER_PATTERN.match(value):
        raise ValidationError("must be a number")
    # Exponents past float range overflow to inf
    if not math.isfinite(float(value)):
        raise ValidationError("must be a number")
    return value


VALIDATORS = {
    SlotType.STRING: validate_string,
    SlotType.DATE: validate_date,
    SlotType.DATETIME: validate_datetime,
    SlotType.NUMBER: validate_number,
}


# =============================================================================
# MAIN VALIDATION FUNCTION
# =============================================================================

def validate_slot(raw: str, slot: SlotDefinition) -> str:
    """
    Validate a raw answer against the slot's declared type.

    Args:
        raw: The user's answer, exactly as submitted
        slot: The slot definition being answered

    Returns:
        The normalized value to record

    Raises:
        ValidationError: If the answer does not satisfy the slot type
    """
    validator = VALIDATORS[slot.slot_type]
    try:
        value = validator(raw)
    except ValidationError as e:
        logger.debug(f"Validation failed: slot={slot.key} type={slot.slot_type.value} reason={e.reason}")
        raise ValidationError(e.reason, slot_key=slot.key) from None

    logger.debug(f"Validation passed: slot={slot.key} value={value}")
    return value
