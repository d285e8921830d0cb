"""
Pure domain layer.

This module contains pure data transfer objects with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable.
"""

from payroll_kernel.domain.advance import (
    ADVANCE_TRANSITIONS,
    DELETABLE_ADVANCE_STATUSES,
    OUTSTANDING_ADVANCE_STATUSES,
    SCHEDULE_INSTALLMENTS,
    AdvanceSalary,
    AdvanceStatus,
    AdvanceSummary,
    DeductionSchedule,
)
from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.salary import (
    SALARY_TRANSITIONS,
    TERMINAL_SALARY_STATUSES,
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

__all__ = [
    "ADVANCE_TRANSITIONS",
    "DELETABLE_ADVANCE_STATUSES",
    "OUTSTANDING_ADVANCE_STATUSES",
    "SCHEDULE_INSTALLMENTS",
    "AdvanceSalary",
    "AdvanceStatus",
    "AdvanceSummary",
    "DeductionSchedule",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "SALARY_TRANSITIONS",
    "TERMINAL_SALARY_STATUSES",
    "AdvanceDeduction",
    "Allowances",
    "Deductions",
    "Overtime",
    "PaymentMethod",
    "SalaryInputs",
    "SalaryRecord",
    "SalaryStatus",
    "SalarySummary",
]
