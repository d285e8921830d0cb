"""
payroll_engines.advance_lifecycle -- Advance salary request lifecycle.

Responsibility:
    Pure transitions for an ``AdvanceSalary``: request, update while pending,
    approve, reject, mark paid, deletion guard, deduction eligibility and the
    single-deduction primitive used by settlement.

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock access.  Every
    function returns a new ``AdvanceSalary``; the caller persists it.

    pending  --approve--> approved --mark_paid--> paid
    pending  --reject-->  rejected
    approved --reject-->  rejected

Invariants enforced:
    - Transitions follow ``ADVANCE_TRANSITIONS``.
    - At most one outstanding (pending or approved) advance per employee at
      request time, checked against the caller-supplied advances.
    - ``remaining_amount`` never goes negative; a fully deducted advance
      accepts no further deductions.
    - ``remaining_amount`` is re-asserted to ``amount`` when the advance is
      paid out.

Failure modes:
    - ValidationError / InvalidScheduleInputError for bad amounts, reasons or
      schedules.
    - OutstandingAdvanceExistsError when the employee already has an
      outstanding advance.
    - InvalidStateTransitionError for any action the status forbids.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from payroll_engines.schedule import (
    ZERO,
    add_months,
    derive_monthly_deduction,
    installment_count,
    parse_month_key,
    to_decimal,
)
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.advance import (
    ADVANCE_TRANSITIONS,
    DELETABLE_ADVANCE_STATUSES,
    AdvanceSalary,
    AdvanceStatus,
    DeductionSchedule,
)
from payroll_kernel.domain.salary import PaymentMethod
from payroll_kernel.exceptions import (
    InvalidStateTransitionError,
    OutstandingAdvanceExistsError,
    ValidationError,
)


def _require_transition(advance: AdvanceSalary, target: AdvanceStatus, action: str) -> None:
    if target not in ADVANCE_TRANSITIONS[advance.status]:
        raise InvalidStateTransitionError(
            "advance_salary", str(advance.id), advance.status.value, action
        )


def _positive_amount(amount: Decimal | int | str, max_amount: Decimal | None) -> Decimal:
    value = to_decimal(amount)
    if value <= 0:
        raise ValidationError("amount", "must be greater than zero", value)
    if max_amount is not None and value > max_amount:
        raise ValidationError("amount", f"must not exceed {max_amount}", value)
    return value


def _required_text(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(field, "is required", value)
    return str(value).strip()


def _coerce_schedule(schedule: DeductionSchedule | str) -> DeductionSchedule:
    try:
        return DeductionSchedule(schedule)
    except ValueError as exc:
        raise ValidationError("deduction_schedule", "unknown schedule", schedule) from exc


def find_outstanding_advance(
    employee_id: str,
    advances: Iterable[AdvanceSalary],
) -> AdvanceSalary | None:
    """First pending or approved advance belonging to ``employee_id``."""
    for advance in advances:
        if advance.employee_id == employee_id and advance.is_outstanding:
            return advance
    return None


@traced_engine(
    "advance_request", "1.0",
    fingerprint_fields=("employee_id", "amount", "schedule", "custom_monthly"),
)
def request_advance(
    employee_id: str,
    amount: Decimal | int | str,
    reason: str,
    schedule: DeductionSchedule | str = DeductionSchedule.SINGLE_MONTH,
    custom_monthly: Decimal | int | str | None = None,
    existing_advances: Iterable[AdvanceSalary] = (),
    requested_at: datetime | None = None,
    employee_name: str = "",
    notes: str | None = None,
    max_amount: Decimal | None = None,
) -> AdvanceSalary:
    """Create a pending advance.

    ``existing_advances`` is the employee's current advances as loaded by the
    caller; the persistence layer re-checks exclusivity at write time.

    Raises:
        OutstandingAdvanceExistsError: the employee already has a pending or
            approved advance.
        ValidationError: bad amount, reason or schedule.
    """
    employee_id = _required_text(employee_id, "employee_id")
    value = _positive_amount(amount, max_amount)
    reason = _required_text(reason, "reason")
    schedule = _coerce_schedule(schedule)

    outstanding = find_outstanding_advance(employee_id, existing_advances)
    if outstanding is not None:
        raise OutstandingAdvanceExistsError(
            employee_id, str(outstanding.id), outstanding.status.value
        )

    monthly = derive_monthly_deduction(value, schedule, custom_monthly)
    return AdvanceSalary(
        employee_id=employee_id,
        employee_name=employee_name,
        amount=value,
        reason=reason,
        deduction_schedule=schedule,
        monthly_deduction=monthly,
        remaining_amount=value,
        requested_at=requested_at,
        notes=notes,
    )


def update_advance(
    advance: AdvanceSalary,
    amount: Decimal | int | str | None = None,
    reason: str | None = None,
    schedule: DeductionSchedule | str | None = None,
    custom_monthly: Decimal | int | str | None = None,
    notes: str | None = None,
    max_amount: Decimal | None = None,
) -> AdvanceSalary:
    """Edit a pending advance, recomputing the monthly deduction.

    Omitted arguments keep their current value.  Switching to (or staying
    on) a custom schedule without a new ``custom_monthly`` keeps the current
    monthly deduction.
    """
    if advance.status != AdvanceStatus.PENDING:
        raise InvalidStateTransitionError(
            "advance_salary", str(advance.id), advance.status.value, "update"
        )
    value = _positive_amount(amount, max_amount) if amount is not None else advance.amount
    new_reason = _required_text(reason, "reason") if reason is not None else advance.reason
    new_schedule = _coerce_schedule(schedule) if schedule is not None else advance.deduction_schedule

    if (
        custom_monthly is None
        and new_schedule == DeductionSchedule.CUSTOM
        and advance.deduction_schedule == DeductionSchedule.CUSTOM
    ):
        custom_monthly = advance.monthly_deduction
    monthly = derive_monthly_deduction(value, new_schedule, custom_monthly)

    return replace(
        advance,
        amount=value,
        reason=new_reason,
        deduction_schedule=new_schedule,
        monthly_deduction=monthly,
        remaining_amount=value,
        notes=notes if notes is not None else advance.notes,
    )


def approve_advance(
    advance: AdvanceSalary,
    approver_id: str,
    approved_at: datetime,
    approver_name: str | None = None,
    notes: str | None = None,
) -> AdvanceSalary:
    """pending -> approved."""
    if advance.status != AdvanceStatus.PENDING:
        raise InvalidStateTransitionError(
            "advance_salary", str(advance.id), advance.status.value, "approve"
        )
    return replace(
        advance,
        status=AdvanceStatus.APPROVED,
        approved_by=_required_text(approver_id, "approved_by"),
        approved_by_name=approver_name,
        approved_at=approved_at,
        notes=notes if notes is not None else advance.notes,
    )


def reject_advance(
    advance: AdvanceSalary,
    approver_id: str,
    rejection_reason: str,
    rejected_at: datetime,
    approver_name: str | None = None,
) -> AdvanceSalary:
    """pending or approved -> rejected.  A reason is mandatory."""
    _require_transition(advance, AdvanceStatus.REJECTED, "reject")
    return replace(
        advance,
        status=AdvanceStatus.REJECTED,
        rejection_reason=_required_text(rejection_reason, "rejection_reason"),
        approved_by=_required_text(approver_id, "approved_by"),
        approved_by_name=approver_name,
        approved_at=rejected_at,
    )


@traced_engine(
    "advance_payment", "1.0",
    fingerprint_fields=("advance", "payment_method", "deduction_start_month"),
)
def mark_advance_paid(
    advance: AdvanceSalary,
    payment_method: PaymentMethod | str,
    deduction_start_month: str,
    paid_at: datetime,
    notes: str | None = None,
) -> AdvanceSalary:
    """approved -> paid.

    Records the payment, re-asserts ``remaining_amount = amount`` and the
    deduction window: the end month is the start month shifted by the number
    of installments minus one.

    Raises:
        InvalidStateTransitionError: the advance is not approved.
        ValidationError: bad payment method or start month.
    """
    if advance.status != AdvanceStatus.APPROVED:
        raise InvalidStateTransitionError(
            "advance_salary", str(advance.id), advance.status.value, "mark paid"
        )
    try:
        method = PaymentMethod(payment_method)
    except ValueError as exc:
        raise ValidationError("payment_method", "unknown payment method", payment_method) from exc
    parse_month_key(deduction_start_month)

    installments = installment_count(advance.amount, advance.monthly_deduction)
    return replace(
        advance,
        status=AdvanceStatus.PAID,
        payment_date=paid_at,
        payment_method=method,
        deduction_start_month=deduction_start_month,
        deduction_end_month=add_months(deduction_start_month, installments - 1),
        total_deducted=ZERO,
        remaining_amount=advance.amount,
        notes=notes if notes is not None else advance.notes,
    )


def check_deletable(advance: AdvanceSalary) -> None:
    """Raise unless the advance is pending or rejected."""
    if advance.status not in DELETABLE_ADVANCE_STATUSES:
        raise InvalidStateTransitionError(
            "advance_salary", str(advance.id), advance.status.value, "delete"
        )


def is_eligible_for_deduction(advance: AdvanceSalary, target_month_key: str) -> bool:
    """True when the advance is paid, not fully deducted, and recovery has
    started on or before ``target_month_key``."""
    parse_month_key(target_month_key)
    if advance.status != AdvanceStatus.PAID or advance.is_fully_deducted:
        return False
    if not advance.deduction_start_month:
        return False
    return target_month_key >= advance.deduction_start_month


def apply_deduction(advance: AdvanceSalary, amount: Decimal) -> AdvanceSalary:
    """Recover ``amount`` (capped at the remaining balance) from a paid advance.

    Raises:
        InvalidStateTransitionError: the advance is not paid or is already
            fully deducted.
        ValidationError: ``amount`` is not positive.
    """
    if advance.status != AdvanceStatus.PAID or advance.is_fully_deducted:
        state = "fully_deducted" if advance.status == AdvanceStatus.PAID else advance.status.value
        raise InvalidStateTransitionError(
            "advance_salary", str(advance.id), state, "deduct from"
        )
    if amount <= 0:
        raise ValidationError("amount", "must be greater than zero", amount)

    applied = min(amount, advance.remaining_amount)
    remaining = advance.remaining_amount - applied
    return replace(
        advance,
        total_deducted=advance.total_deducted + applied,
        remaining_amount=remaining if remaining > 0 else ZERO,
    )
