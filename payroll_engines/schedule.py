"""
payroll_engines.schedule -- Money and deduction-schedule utilities.

Responsibility:
    Pure helpers shared by every payroll engine: Decimal coercion and cent
    rounding, per-day pro-rating, the schedule -> monthly deduction table,
    and "YYYY-MM" month keys (construction, parsing, comparison, month
    arithmetic).

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Leaf module: imports only
    kernel domain types and exceptions.

Invariants enforced:
    - Decimal-only arithmetic.  Floats are rejected by ``to_decimal``.
    - Month keys are always zero-padded, so lexical order equals
      chronological order.
    - A divided schedule always recovers the advance in exactly the number
      of installments the schedule names: the monthly figure is rounded UP
      to the cent and the final installment is capped at the remainder.

Failure modes:
    - ValidationError for malformed months, years, amounts or month keys.
    - InvalidScheduleInputError for a custom schedule without a positive
      monthly value.
    - DivisionByZeroError when pro-rating over zero working days.
"""

from __future__ import annotations

import re
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation

from payroll_kernel.domain.advance import SCHEDULE_INSTALLMENTS, DeductionSchedule
from payroll_kernel.exceptions import (
    DivisionByZeroError,
    InvalidScheduleInputError,
    ValidationError,
)

CENT = Decimal("0.01")
ZERO = Decimal("0")

_MONTH_KEY_RE = re.compile(r"([0-9]{4})-([0-9]{2})")


# =========================================================================
# Money
# =========================================================================


def to_decimal(value: Decimal | int | str | None, field: str = "amount") -> Decimal:
    """Coerce an int, str or Decimal to a finite Decimal.

    ``None`` becomes zero so optional components can be omitted.  Floats are
    refused: a binary float has already lost the cents.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(field, "must be Decimal, int or str, not float", value)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValidationError(field, "not a number", value) from exc
    if not result.is_finite():
        raise ValidationError(field, "must be finite", value)
    return result


def round_money(amount: Decimal) -> Decimal:
    """Quantize to cents with ROUND_HALF_UP."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def pro_rate(amount: Decimal, working_days: int, present_days: int) -> Decimal:
    """Scale ``amount`` by present / working days, rounded to the cent."""
    if working_days == 0:
        raise DivisionByZeroError("pro-rate salary", "working_days")
    return round_money(amount / Decimal(working_days) * Decimal(present_days))


# =========================================================================
# Schedules
# =========================================================================


def derive_monthly_deduction(
    amount: Decimal,
    schedule: DeductionSchedule | str,
    custom_value: Decimal | int | str | None = None,
) -> Decimal:
    """Monthly recovery amount for an advance under ``schedule``.

    single_month -> amount, two_months -> amount / 2, three_months ->
    amount / 3 (rounded up to the cent), custom -> ``custom_value``.

    Raises:
        InvalidScheduleInputError: custom schedule without a positive value.
        ValidationError: unknown schedule or non-positive amount.
    """
    schedule = _coerce_schedule(schedule)
    amount = to_decimal(amount)
    if amount <= 0:
        raise ValidationError("amount", "must be greater than zero", amount)

    if schedule == DeductionSchedule.CUSTOM:
        if custom_value is None:
            raise InvalidScheduleInputError(
                schedule.value, "custom schedule requires a monthly deduction"
            )
        value = to_decimal(custom_value, "monthly_deduction")
        if value <= 0:
            raise InvalidScheduleInputError(
                schedule.value, "monthly deduction must be greater than zero", value
            )
        return value

    divisor = SCHEDULE_INSTALLMENTS[schedule]
    return (amount / divisor).quantize(CENT, rounding=ROUND_CEILING)


def installment_count(amount: Decimal, monthly_deduction: Decimal) -> int:
    """Number of monthly deductions needed to recover ``amount``."""
    if monthly_deduction <= 0:
        raise ValidationError("monthly_deduction", "must be greater than zero", monthly_deduction)
    count = (amount / monthly_deduction).to_integral_value(rounding=ROUND_CEILING)
    return max(int(count), 1)


def _coerce_schedule(schedule: DeductionSchedule | str) -> DeductionSchedule:
    if isinstance(schedule, DeductionSchedule):
        return schedule
    try:
        return DeductionSchedule(schedule)
    except ValueError as exc:
        raise ValidationError("deduction_schedule", "unknown schedule", schedule) from exc


# =========================================================================
# Month keys
# =========================================================================


def normalize_month(month: str | int) -> str:
    """Return the month as a two-digit string "01".."12"."""
    if isinstance(month, bool):
        raise ValidationError("month", "must be 1-12", month)
    try:
        number = int(str(month).strip())
    except ValueError as exc:
        raise ValidationError("month", "must be 1-12", month) from exc
    if not 1 <= number <= 12:
        raise ValidationError("month", "must be 1-12", month)
    return f"{number:02d}"


def month_key(year: int, month: str | int) -> str:
    """Build a zero-padded "YYYY-MM" key."""
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9999:
        raise ValidationError("year", "must be a four-digit year", year)
    return f"{year:04d}-{normalize_month(month)}"


def parse_month_key(key: str) -> tuple[int, int]:
    """Split a "YYYY-MM" key into (year, month), validating the format."""
    match = _MONTH_KEY_RE.fullmatch(key or "")
    if match is None:
        raise ValidationError("month_key", "expected YYYY-MM", key)
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError("month_key", "month must be 01-12", key)
    return year, month


def compare_month_keys(a: str, b: str) -> int:
    """-1, 0 or 1 as ``a`` is before, equal to or after ``b``."""
    parse_month_key(a)
    parse_month_key(b)
    return (a > b) - (a < b)


def add_months(key: str, months: int) -> str:
    """Shift a month key by ``months`` (may be negative)."""
    year, month = parse_month_key(key)
    index = year * 12 + (month - 1) + months
    return month_key(index // 12, index % 12 + 1)
