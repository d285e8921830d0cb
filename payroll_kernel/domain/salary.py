"""
Salary record domain types (``payroll_kernel.domain.salary``).

Responsibility
--------------
Frozen value objects for one employee-month of payroll: the raw inputs
(basic pay, allowance and deduction components, overtime, attendance day
counts), the derived totals, the record's status lifecycle and the ordered
list of advance deductions applied to it.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports from
``db/`` or outer layers.  Derivation lives in
``payroll_engines.salary_record``; these classes only hold data.

Invariants enforced
-------------------
* All monetary fields are ``Decimal`` -- NEVER ``float``.
* Component totals (``Allowances.total``, ``Deductions.total``,
  ``Overtime.amount``) are properties over the component fields, so they
  cannot drift from their inputs.
* ``SALARY_TRANSITIONS`` defines the only valid status transitions.  Terminal
  statuses have no outgoing edges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

ZERO = Decimal("0")


class SalaryStatus(str, Enum):
    """Salary record lifecycle states."""

    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


SALARY_TRANSITIONS: dict[SalaryStatus, frozenset[SalaryStatus]] = {
    SalaryStatus.DRAFT: frozenset({SalaryStatus.APPROVED, SalaryStatus.CANCELLED}),
    SalaryStatus.APPROVED: frozenset({SalaryStatus.PAID, SalaryStatus.CANCELLED}),
    SalaryStatus.PAID: frozenset(),
    SalaryStatus.CANCELLED: frozenset(),
}

TERMINAL_SALARY_STATUSES: frozenset[SalaryStatus] = frozenset({
    SalaryStatus.PAID,
    SalaryStatus.CANCELLED,
})


class PaymentMethod(str, Enum):
    """How money reached the employee."""

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"


def _money(value: Decimal) -> str:
    return str(value)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# =========================================================================
# Components
# =========================================================================


@dataclass(frozen=True)
class Allowances:
    """Allowance components added on top of basic salary."""

    hra: Decimal = ZERO
    transport: Decimal = ZERO
    medical: Decimal = ZERO
    bonus: Decimal = ZERO
    other: Decimal = ZERO

    FIELDS = ("hra", "transport", "medical", "bonus", "other")

    @property
    def total(self) -> Decimal:
        return self.hra + self.transport + self.medical + self.bonus + self.other

    def to_dict(self) -> dict[str, str]:
        data = {name: _money(getattr(self, name)) for name in self.FIELDS}
        data["total"] = _money(self.total)
        return data


@dataclass(frozen=True)
class Deductions:
    """
    Deduction components subtracted from total salary.

    ``advance`` accumulates both any caller-supplied advance recovery and
    every settlement entry appended to the record.
    """

    pf: Decimal = ZERO
    esi: Decimal = ZERO
    tax: Decimal = ZERO
    advance: Decimal = ZERO
    other: Decimal = ZERO

    FIELDS = ("pf", "esi", "tax", "advance", "other")

    @property
    def total(self) -> Decimal:
        return self.pf + self.esi + self.tax + self.advance + self.other

    def to_dict(self) -> dict[str, str]:
        data = {name: _money(getattr(self, name)) for name in self.FIELDS}
        data["total"] = _money(self.total)
        return data


@dataclass(frozen=True)
class Overtime:
    """Overtime hours paid at a flat hourly rate."""

    hours: Decimal = ZERO
    rate: Decimal = ZERO

    @property
    def amount(self) -> Decimal:
        return self.hours * self.rate

    def to_dict(self) -> dict[str, str]:
        return {
            "hours": _money(self.hours),
            "rate": _money(self.rate),
            "amount": _money(self.amount),
        }


@dataclass(frozen=True)
class AdvanceDeduction:
    """One advance recovery line on a salary record."""

    advance_id: UUID
    amount: Decimal
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "advance_id": str(self.advance_id),
            "amount": _money(self.amount),
            "description": self.description,
        }


# =========================================================================
# Inputs and record
# =========================================================================


@dataclass(frozen=True)
class SalaryInputs:
    """Raw, caller-supplied inputs for one employee-month."""

    employee_id: str
    month: str | int
    year: int
    basic_salary: Decimal
    working_days: int
    present_days: int
    allowances: Allowances = field(default_factory=Allowances)
    deductions: Deductions = field(default_factory=Deductions)
    overtime: Overtime = field(default_factory=Overtime)
    employee_name: str = ""
    notes: str | None = None


@dataclass(frozen=True)
class SalaryRecord:
    """
    A fully derived salary record for one employee-month.

    Unique on (``employee_id``, ``month``, ``year``).  ``absent_days``,
    ``total_salary`` and ``net_salary`` are stored so the record can be
    persisted and serialized as-is, and are recomputed by
    ``payroll_engines.salary_record.derive_salary_record`` after every
    mutation.
    """

    employee_id: str
    month: str
    year: int
    basic_salary: Decimal
    allowances: Allowances
    deductions: Deductions
    overtime: Overtime
    working_days: int
    present_days: int
    absent_days: int
    total_salary: Decimal
    net_salary: Decimal
    id: UUID = field(default_factory=uuid4)
    employee_name: str = ""
    status: SalaryStatus = SalaryStatus.DRAFT
    advance_deductions: tuple[AdvanceDeduction, ...] = ()
    approved_by: str | None = None
    approved_by_name: str | None = None
    approved_at: datetime | None = None
    paid_at: datetime | None = None
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    payment_reference: str | None = None
    notes: str | None = None
    version: int = 1

    @property
    def month_key(self) -> str:
        return f"{self.year:04d}-{self.month}"

    @property
    def advance_ids(self) -> frozenset[UUID]:
        return frozenset(d.advance_id for d in self.advance_deductions)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_SALARY_STATUSES

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible representation (Decimal as string, ISO timestamps)."""
        return {
            "id": str(self.id),
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "month": self.month,
            "year": self.year,
            "basic_salary": _money(self.basic_salary),
            "allowances": self.allowances.to_dict(),
            "deductions": self.deductions.to_dict(),
            "overtime": self.overtime.to_dict(),
            "working_days": self.working_days,
            "present_days": self.present_days,
            "absent_days": self.absent_days,
            "total_salary": _money(self.total_salary),
            "net_salary": _money(self.net_salary),
            "status": self.status.value,
            "advance_deductions": [d.to_dict() for d in self.advance_deductions],
            "approved_by": self.approved_by,
            "approved_by_name": self.approved_by_name,
            "approved_at": _iso(self.approved_at),
            "paid_at": _iso(self.paid_at),
            "payment_method": self.payment_method.value,
            "payment_reference": self.payment_reference,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class SalarySummary:
    """Aggregate over paid salary records in a month range."""

    start_month: str
    end_month: str
    total_salary_paid: Decimal
    total_employees: int
    total_advance_deductions: Decimal
    average_salary: Decimal
