"""
Advance salary domain types (``payroll_kernel.domain.advance``).

Responsibility
--------------
Frozen value objects for salary advances: the request/approval/payment
status machine, the deduction schedule that decides how many monthly
installments an advance is recovered over, and the advance record itself.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Transitions are
performed by ``payroll_engines.advance_lifecycle``; settlement arithmetic by
``payroll_engines.settlement``.

Invariants enforced
-------------------
* ``ADVANCE_TRANSITIONS`` defines the only valid status transitions.
* ``is_fully_deducted`` is derived from ``remaining_amount`` and can never
  disagree with it.
* At most one advance per employee may be in an OUTSTANDING status
  (enforced by the lifecycle and, at write time, by the persistence layer).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from payroll_kernel.domain.salary import PaymentMethod

ZERO = Decimal("0")


class AdvanceStatus(str, Enum):
    """Advance request lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


ADVANCE_TRANSITIONS: dict[AdvanceStatus, frozenset[AdvanceStatus]] = {
    AdvanceStatus.PENDING: frozenset({AdvanceStatus.APPROVED, AdvanceStatus.REJECTED}),
    AdvanceStatus.APPROVED: frozenset({AdvanceStatus.PAID, AdvanceStatus.REJECTED}),
    AdvanceStatus.REJECTED: frozenset(),
    AdvanceStatus.PAID: frozenset(),
}

# Unpaid advances that block a new request from the same employee.
OUTSTANDING_ADVANCE_STATUSES: frozenset[AdvanceStatus] = frozenset({
    AdvanceStatus.PENDING,
    AdvanceStatus.APPROVED,
})

# Approved and paid advances are part of the audit trail.
DELETABLE_ADVANCE_STATUSES: frozenset[AdvanceStatus] = frozenset({
    AdvanceStatus.PENDING,
    AdvanceStatus.REJECTED,
})


class DeductionSchedule(str, Enum):
    """How many monthly installments an advance is recovered over."""

    SINGLE_MONTH = "single_month"
    TWO_MONTHS = "two_months"
    THREE_MONTHS = "three_months"
    CUSTOM = "custom"


SCHEDULE_INSTALLMENTS: dict[DeductionSchedule, int] = {
    DeductionSchedule.SINGLE_MONTH: 1,
    DeductionSchedule.TWO_MONTHS: 2,
    DeductionSchedule.THREE_MONTHS: 3,
}


@dataclass(frozen=True)
class AdvanceSalary:
    """
    One advance granted (or requested) for one employee.

    ``amount`` is immutable once the advance is paid.  ``total_deducted`` and
    ``remaining_amount`` move only through settlement.
    """

    employee_id: str
    amount: Decimal
    reason: str
    deduction_schedule: DeductionSchedule
    monthly_deduction: Decimal
    remaining_amount: Decimal
    id: UUID = field(default_factory=uuid4)
    employee_name: str = ""
    status: AdvanceStatus = AdvanceStatus.PENDING
    requested_at: datetime | None = None
    total_deducted: Decimal = ZERO
    approved_by: str | None = None
    approved_by_name: str | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    payment_date: datetime | None = None
    payment_method: PaymentMethod | None = None
    deduction_start_month: str | None = None
    deduction_end_month: str | None = None
    notes: str | None = None
    version: int = 1

    @property
    def is_fully_deducted(self) -> bool:
        return self.remaining_amount <= 0

    @property
    def is_outstanding(self) -> bool:
        return self.status in OUTSTANDING_ADVANCE_STATUSES

    @property
    def is_settled(self) -> bool:
        return self.status == AdvanceStatus.PAID and self.is_fully_deducted

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible representation (Decimal as string, ISO timestamps)."""
        return {
            "id": str(self.id),
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "amount": str(self.amount),
            "reason": self.reason,
            "status": self.status.value,
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "deduction_schedule": self.deduction_schedule.value,
            "monthly_deduction": str(self.monthly_deduction),
            "total_deducted": str(self.total_deducted),
            "remaining_amount": str(self.remaining_amount),
            "is_fully_deducted": self.is_fully_deducted,
            "approved_by": self.approved_by,
            "approved_by_name": self.approved_by_name,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "rejection_reason": self.rejection_reason,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "deduction_start_month": self.deduction_start_month,
            "deduction_end_month": self.deduction_end_month,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class AdvanceSummary:
    """Outstanding balance, settlement queue and recent history for one employee."""

    employee_id: str
    total_outstanding: Decimal
    pending_advances: tuple[AdvanceSalary, ...]
    history: tuple[AdvanceSalary, ...]
