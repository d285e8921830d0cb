"""
payroll_engines.settlement -- Advance settlement coordinator.

Responsibility:
    Apply every eligible advance deduction for one salary record's month in
    a single pass, producing the updated salary record and the updated
    advances together as one ``SettlementResult``.  Also answers the
    read-side questions "which advances are still being recovered" and "how
    much is still owed".

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Builds on
    ``advance_lifecycle.apply_deduction`` and
    ``salary_record.add_advance_deduction``.  The caller
    (``SalaryService.settle_salary_record``) persists both halves of the
    result in one transaction.

Invariants enforced:
    - FIFO: eligible advances are settled in ascending ``payment_date``, ties
      broken by ``requested_at`` and then id, so the result is deterministic.
    - All-or-nothing: any failure while applying deductions raises
      ``SettlementFailedError`` and no partial result escapes.
    - An advance already deducted on the record is never deducted twice.
    - For each applied line, the advance's ``total_deducted`` increase equals
      the amount added to the record's ``deductions.advance``.

Failure modes:
    - InvalidStateTransitionError if the salary record is not a draft.
    - ValidationError if an advance belongs to another employee.
    - SettlementFailedError wrapping the first failure inside the apply loop.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from payroll_engines.advance_lifecycle import apply_deduction, is_eligible_for_deduction
from payroll_engines.salary_record import add_advance_deduction
from payroll_engines.schedule import ZERO
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.advance import AdvanceSalary, AdvanceStatus, AdvanceSummary
from payroll_kernel.domain.salary import AdvanceDeduction, SalaryRecord, SalaryStatus
from payroll_kernel.exceptions import (
    InvalidStateTransitionError,
    SettlementFailedError,
    ValidationError,
)
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.settlement")

DEFAULT_DESCRIPTION_TEMPLATE = "Advance salary deduction for {month_key}"

_LATEST = datetime.max.replace(tzinfo=UTC)
_EARLIEST = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of settling one salary record.

    ``advances`` holds only the advances that received a deduction, in the
    order they were settled.
    """

    salary_record: SalaryRecord
    advances: tuple[AdvanceSalary, ...]
    deductions: tuple[AdvanceDeduction, ...]

    @property
    def total_deducted(self) -> Decimal:
        return sum((d.amount for d in self.deductions), ZERO)


def settlement_order_key(advance: AdvanceSalary) -> tuple[datetime, datetime, str]:
    return (
        advance.payment_date or _LATEST,
        advance.requested_at or _LATEST,
        str(advance.id),
    )


def _recoverable(employee_id: str, advances: Iterable[AdvanceSalary]) -> list[AdvanceSalary]:
    selected = [
        a for a in advances
        if a.employee_id == employee_id
        and a.status == AdvanceStatus.PAID
        and not a.is_fully_deducted
    ]
    return sorted(selected, key=settlement_order_key)


@traced_engine(
    "settlement", "1.0",
    fingerprint_fields=("salary_record", "advances"),
)
def settle_advances_for_period(
    salary_record: SalaryRecord,
    advances: Iterable[AdvanceSalary],
    description_template: str = DEFAULT_DESCRIPTION_TEMPLATE,
) -> SettlementResult:
    """Deduct every eligible advance from ``salary_record``.

    For each eligible advance in FIFO order the deduction is
    ``min(remaining_amount, monthly_deduction)``.  Advances that are not yet
    due, not paid, fully deducted or already present on the record are
    skipped.

    Raises:
        InvalidStateTransitionError: the salary record is not a draft.
        ValidationError: an advance belongs to a different employee.
        SettlementFailedError: applying a deduction failed; nothing applied.
    """
    if salary_record.status != SalaryStatus.DRAFT:
        raise InvalidStateTransitionError(
            "salary_record",
            str(salary_record.id),
            salary_record.status.value,
            "settle advances for",
        )

    advances = list(advances)
    for advance in advances:
        if advance.employee_id != salary_record.employee_id:
            raise ValidationError(
                "advances",
                f"advance {advance.id} belongs to employee {advance.employee_id}",
                salary_record.employee_id,
            )

    period = salary_record.month_key
    already = salary_record.advance_ids
    eligible = [
        a for a in sorted(advances, key=settlement_order_key)
        if a.id not in already and is_eligible_for_deduction(a, period)
    ]

    record = salary_record
    settled: list[AdvanceSalary] = []
    for index, advance in enumerate(eligible):
        try:
            amount = min(advance.remaining_amount, advance.monthly_deduction)
            updated = apply_deduction(advance, amount)
            record = add_advance_deduction(
                record,
                advance.id,
                amount,
                description_template.format(
                    month_key=period,
                    advance_id=advance.id,
                    reason=advance.reason,
                ),
            )
        except Exception as exc:
            logger.error(
                "settlement_failed",
                extra={
                    "salary_record_id": str(salary_record.id),
                    "advance_id": str(advance.id),
                    "index": index,
                },
            )
            raise SettlementFailedError(
                str(salary_record.id), str(advance.id), index, str(exc)
            ) from exc
        settled.append(updated)

    result = SettlementResult(
        salary_record=record,
        advances=tuple(settled),
        deductions=record.advance_deductions[len(salary_record.advance_deductions):],
    )
    logger.info(
        "settlement_computed",
        extra={
            "salary_record_id": str(salary_record.id),
            "employee_id": salary_record.employee_id,
            "month_key": period,
            "advance_count": len(settled),
            "total_deducted": result.total_deducted,
        },
    )
    return result


def get_pending_advances(
    employee_id: str,
    advances: Iterable[AdvanceSalary],
) -> list[AdvanceSalary]:
    """Paid, not fully deducted advances for ``employee_id`` in settlement order."""
    return _recoverable(employee_id, advances)


def get_total_outstanding(
    employee_id: str,
    advances: Iterable[AdvanceSalary],
) -> Decimal:
    """Sum of ``remaining_amount`` over ``get_pending_advances``."""
    return sum((a.remaining_amount for a in _recoverable(employee_id, advances)), ZERO)


def summarize_advances(
    employee_id: str,
    advances: Iterable[AdvanceSalary],
    history_limit: int = 10,
) -> AdvanceSummary:
    """Outstanding total, recovery queue and most recent requests."""
    own = [a for a in advances if a.employee_id == employee_id]
    pending = _recoverable(employee_id, own)
    history = sorted(
        own,
        key=lambda a: (a.requested_at or _EARLIEST, str(a.id)),
        reverse=True,
    )[:history_limit]
    return AdvanceSummary(
        employee_id=employee_id,
        total_outstanding=sum((a.remaining_amount for a in pending), ZERO),
        pending_advances=tuple(pending),
        history=tuple(history),
    )
