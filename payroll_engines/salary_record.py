"""
payroll_engines.salary_record -- Salary record calculator.

Responsibility:
    Validate raw salary inputs and derive a complete ``SalaryRecord``:
    component totals, absent days, total and net salary.  Also owns every
    pure transformation of an existing record (input edits, pro-rating,
    appending an advance deduction, status transitions) and the read-side
    projections (payslip data, paid-salary summary).

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock access.  Callers
    (``payroll_modules.salary.service``) supply timestamps and persist the
    returned records.

Invariants enforced:
    - ``net_salary == total_salary - deductions.total`` on every record this
      module returns; derived fields are recomputed by ``derive_salary_record``
      after every change and are never edited in place.
    - ``present_days > working_days`` is rejected, never clamped.
    - Status changes follow ``SALARY_TRANSITIONS``.

Failure modes:
    - ValidationError for negative amounts, out-of-range days, bad month/year.
    - DivisionByZeroError from ``apply_pro_rating`` with zero working days.
    - InvalidStateTransitionError for edits or transitions the status forbids.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from payroll_engines.schedule import (
    ZERO,
    compare_month_keys,
    month_key,
    normalize_month,
    pro_rate,
    round_money,
    to_decimal,
)
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.salary import (
    SALARY_TRANSITIONS,
    AdvanceDeduction,
    Allowances,
    Deductions,
    Overtime,
    PaymentMethod,
    SalaryInputs,
    SalaryRecord,
    SalaryStatus,
    SalarySummary,
)
from payroll_kernel.exceptions import (
    DivisionByZeroError,
    InvalidStateTransitionError,
    ValidationError,
)

DEFAULT_MIN_YEAR = 2020
DEFAULT_MAX_WORKING_DAYS = 31

# Inputs that may be edited while a record is still a draft.
EDITABLE_FIELDS = frozenset({
    "basic_salary",
    "allowances",
    "deductions",
    "overtime",
    "working_days",
    "present_days",
    "employee_name",
    "notes",
})


# =========================================================================
# Validation helpers
# =========================================================================


def _non_negative(value: Any, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount < 0:
        raise ValidationError(field, "must not be negative", amount)
    return amount


def _validate_allowances(allowances: Allowances) -> Allowances:
    return Allowances(**{
        name: _non_negative(getattr(allowances, name), f"allowances.{name}")
        for name in Allowances.FIELDS
    })


def _validate_deductions(deductions: Deductions) -> Deductions:
    return Deductions(**{
        name: _non_negative(getattr(deductions, name), f"deductions.{name}")
        for name in Deductions.FIELDS
    })


def _validate_overtime(overtime: Overtime) -> Overtime:
    return Overtime(
        hours=_non_negative(overtime.hours, "overtime.hours"),
        rate=_non_negative(overtime.rate, "overtime.rate"),
    )


def _validate_days(working_days: Any, present_days: Any, max_working_days: int) -> None:
    if isinstance(working_days, bool) or not isinstance(working_days, int):
        raise ValidationError("working_days", "must be an integer", working_days)
    if isinstance(present_days, bool) or not isinstance(present_days, int):
        raise ValidationError("present_days", "must be an integer", present_days)
    if not 0 <= working_days <= max_working_days:
        raise ValidationError(
            "working_days", f"must be between 0 and {max_working_days}", working_days
        )
    if present_days < 0:
        raise ValidationError("present_days", "must not be negative", present_days)
    if present_days > working_days:
        raise ValidationError(
            "present_days", "cannot exceed working_days", present_days
        )


def _require_transition(record: SalaryRecord, target: SalaryStatus, action: str) -> None:
    if target not in SALARY_TRANSITIONS[record.status]:
        raise InvalidStateTransitionError(
            "salary_record", str(record.id), record.status.value, action
        )


def _require_draft(record: SalaryRecord, action: str) -> None:
    if record.status != SalaryStatus.DRAFT:
        raise InvalidStateTransitionError(
            "salary_record", str(record.id), record.status.value, action
        )


# =========================================================================
# Derivation
# =========================================================================


def derive_salary_record(record: SalaryRecord) -> SalaryRecord:
    """Recompute absent days, total and net salary from the record's inputs."""
    if record.present_days > record.working_days:
        raise ValidationError(
            "present_days", "cannot exceed working_days", record.present_days
        )
    total_salary = record.basic_salary + record.allowances.total + record.overtime.amount
    return replace(
        record,
        absent_days=record.working_days - record.present_days,
        total_salary=total_salary,
        net_salary=total_salary - record.deductions.total,
    )


@traced_engine("salary_record", "1.0", fingerprint_fields=("inputs",))
def compute_salary_record(
    inputs: SalaryInputs,
    min_year: int = DEFAULT_MIN_YEAR,
    max_working_days: int = DEFAULT_MAX_WORKING_DAYS,
) -> SalaryRecord:
    """Validate ``inputs`` and produce a draft salary record.

    Raises:
        ValidationError: any input out of range, including present days
            greater than working days.
    """
    if not inputs.employee_id or not str(inputs.employee_id).strip():
        raise ValidationError("employee_id", "is required", inputs.employee_id)
    month = normalize_month(inputs.month)
    if isinstance(inputs.year, bool) or not isinstance(inputs.year, int):
        raise ValidationError("year", "must be an integer", inputs.year)
    if inputs.year < min_year:
        raise ValidationError("year", f"must be {min_year} or later", inputs.year)
    month_key(inputs.year, month)

    _validate_days(inputs.working_days, inputs.present_days, max_working_days)

    record = SalaryRecord(
        employee_id=str(inputs.employee_id).strip(),
        employee_name=inputs.employee_name,
        month=month,
        year=inputs.year,
        basic_salary=_non_negative(inputs.basic_salary, "basic_salary"),
        allowances=_validate_allowances(inputs.allowances),
        deductions=_validate_deductions(inputs.deductions),
        overtime=_validate_overtime(inputs.overtime),
        working_days=inputs.working_days,
        present_days=inputs.present_days,
        absent_days=0,
        total_salary=ZERO,
        net_salary=ZERO,
        notes=inputs.notes,
    )
    return derive_salary_record(record)


def update_salary_inputs(
    record: SalaryRecord,
    max_working_days: int = DEFAULT_MAX_WORKING_DAYS,
    **changes: Any,
) -> SalaryRecord:
    """Replace editable inputs on a draft record and re-derive it.

    Raises:
        InvalidStateTransitionError: the record is no longer a draft.
        ValidationError: unknown field or invalid value.
    """
    _require_draft(record, "update")
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError("fields", "not editable", sorted(unknown))

    updates: dict[str, Any] = {}
    if "basic_salary" in changes:
        updates["basic_salary"] = _non_negative(changes["basic_salary"], "basic_salary")
    if "allowances" in changes:
        updates["allowances"] = _validate_allowances(changes["allowances"])
    if "deductions" in changes:
        deductions = _validate_deductions(changes["deductions"])
        settled = sum((d.amount for d in record.advance_deductions), ZERO)
        if deductions.advance < settled:
            raise ValidationError(
                "deductions.advance",
                f"must include the {settled} already settled from advances",
                deductions.advance,
            )
        updates["deductions"] = deductions
    if "overtime" in changes:
        updates["overtime"] = _validate_overtime(changes["overtime"])
    if "employee_name" in changes:
        updates["employee_name"] = changes["employee_name"]
    if "notes" in changes:
        updates["notes"] = changes["notes"]

    working_days = changes.get("working_days", record.working_days)
    present_days = changes.get("present_days", record.present_days)
    _validate_days(working_days, present_days, max_working_days)
    updates["working_days"] = working_days
    updates["present_days"] = present_days

    return derive_salary_record(replace(record, **updates))


@traced_engine("salary_pro_rating", "1.0", fingerprint_fields=("record",))
def apply_pro_rating(record: SalaryRecord) -> SalaryRecord:
    """Scale basic salary to the days present, then re-derive.

    A full-attendance record is returned unchanged.

    Raises:
        DivisionByZeroError: ``working_days`` is zero.
    """
    if record.working_days == 0:
        raise DivisionByZeroError("pro-rate salary", "working_days")
    if record.present_days >= record.working_days:
        return record
    basic = pro_rate(record.basic_salary, record.working_days, record.present_days)
    return derive_salary_record(replace(record, basic_salary=basic))


def add_advance_deduction(
    record: SalaryRecord,
    advance_id: UUID,
    amount: Decimal,
    description: str = "",
) -> SalaryRecord:
    """Append one advance recovery line and re-derive the totals."""
    _require_draft(record, "deduct advance from")
    if amount <= 0:
        raise ValidationError("amount", "must be greater than zero", amount)
    if advance_id in record.advance_ids:
        raise ValidationError("advance_id", "already deducted on this record", advance_id)
    updated = replace(
        record,
        advance_deductions=record.advance_deductions
        + (AdvanceDeduction(advance_id=advance_id, amount=amount, description=description),),
        deductions=replace(record.deductions, advance=record.deductions.advance + amount),
    )
    return derive_salary_record(updated)


# =========================================================================
# Status transitions
# =========================================================================


def approve_salary_record(
    record: SalaryRecord,
    approver_id: str,
    approved_at: datetime,
    approver_name: str | None = None,
) -> SalaryRecord:
    """draft -> approved, stamping the approver."""
    _require_transition(record, SalaryStatus.APPROVED, "approve")
    if not approver_id:
        raise ValidationError("approved_by", "is required", approver_id)
    return replace(
        record,
        status=SalaryStatus.APPROVED,
        approved_by=str(approver_id),
        approved_by_name=approver_name,
        approved_at=approved_at,
    )


def mark_salary_paid(
    record: SalaryRecord,
    paid_at: datetime,
    payment_method: PaymentMethod | str = PaymentMethod.BANK_TRANSFER,
    payment_reference: str | None = None,
) -> SalaryRecord:
    """approved -> paid."""
    _require_transition(record, SalaryStatus.PAID, "pay")
    try:
        method = PaymentMethod(payment_method)
    except ValueError as exc:
        raise ValidationError("payment_method", "unknown payment method", payment_method) from exc
    return replace(
        record,
        status=SalaryStatus.PAID,
        paid_at=paid_at,
        payment_method=method,
        payment_reference=payment_reference,
    )


def cancel_salary_record(record: SalaryRecord, notes: str | None = None) -> SalaryRecord:
    """draft or approved -> cancelled."""
    _require_transition(record, SalaryStatus.CANCELLED, "cancel")
    return replace(
        record,
        status=SalaryStatus.CANCELLED,
        notes=notes if notes is not None else record.notes,
    )


# =========================================================================
# Projections
# =========================================================================


def payslip_data(record: SalaryRecord) -> dict[str, Any]:
    """Flat, display-ready view of one salary record."""
    return {
        "employee": {
            "id": record.employee_id,
            "name": record.employee_name,
        },
        "period": {
            "month": record.month,
            "year": record.year,
            "month_key": record.month_key,
        },
        "earnings": {
            "basic_salary": str(record.basic_salary),
            "allowances": record.allowances.to_dict(),
            "overtime": record.overtime.to_dict(),
            "total": str(record.total_salary),
        },
        "deductions": record.deductions.to_dict(),
        "advance_deductions": [d.to_dict() for d in record.advance_deductions],
        "attendance": {
            "working_days": record.working_days,
            "present_days": record.present_days,
            "absent_days": record.absent_days,
        },
        "net_salary": str(record.net_salary),
        "status": record.status.value,
        "payment": {
            "method": record.payment_method.value,
            "reference": record.payment_reference,
            "paid_at": record.paid_at.isoformat() if record.paid_at else None,
        },
    }


def summarize_salaries(
    records: list[SalaryRecord] | tuple[SalaryRecord, ...],
    start_month: str,
    end_month: str,
) -> SalarySummary:
    """Aggregate paid records whose month key falls in [start, end].

    ``total_employees`` counts distinct employees; ``average_salary`` is the
    mean net salary per paid record, rounded to the cent.
    """
    if compare_month_keys(start_month, end_month) > 0:
        raise ValidationError("start_month", "must not be after end_month", start_month)

    paid = [
        r for r in records
        if r.status == SalaryStatus.PAID
        and start_month <= r.month_key <= end_month
    ]
    total_net = sum((r.net_salary for r in paid), ZERO)
    total_advance = sum(
        (d.amount for r in paid for d in r.advance_deductions), ZERO
    )
    average = round_money(total_net / len(paid)) if paid else ZERO
    return SalarySummary(
        start_month=start_month,
        end_month=end_month,
        total_salary_paid=total_net,
        total_employees=len({r.employee_id for r in paid}),
        total_advance_deductions=total_advance,
        average_salary=average,
    )
