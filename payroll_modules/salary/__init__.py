"""
Salary Module (``payroll_modules.salary``).

Responsibility
--------------
Glue for monthly salary records and salary advances: configuration,
persistence and the ``SalaryService`` facade that delegates all arithmetic
and state transitions to ``payroll_engines``.

Invariants enforced
-------------------
* Transaction boundary owned by ``SalaryService``.
* Settlement writes salary record and advances atomically.
* One outstanding advance per employee, backed by a partial unique index.
"""

from payroll_modules.salary.config import SalaryConfig
from payroll_modules.salary.orm import (
    AdvanceSalaryModel,
    SalaryAdvanceDeductionModel,
    SalaryRecordModel,
)
from payroll_modules.salary.service import SalaryService, employee_lock

__all__ = [
    "SalaryConfig",
    "SalaryService",
    "employee_lock",
    "AdvanceSalaryModel",
    "SalaryRecordModel",
    "SalaryAdvanceDeductionModel",
]
