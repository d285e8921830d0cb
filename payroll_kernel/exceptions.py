"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll errors end up in front of people: an HR clerk who typed a negative
allowance, a manager approving an advance twice, a payroll run that could not
settle an employee's advances. Callers must be able to tell these apart
without parsing message strings, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        service.mark_advance_paid(advance_id, ...)
    except InvalidStateTransitionError as e:
        api_response(409, code=e.code, status=e.current_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from PayrollKernelError:

    PayrollKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidScheduleInputError
    |
    +-- DivisionByZeroError
    |
    +-- LifecycleError
    |   +-- InvalidStateTransitionError
    |
    +-- ConflictError
    |   +-- OutstandingAdvanceExistsError
    |   +-- DuplicateSalaryRecordError
    |
    +-- SettlementError
    |   +-- SettlementFailedError
    |
    +-- NotFoundError
    |   +-- AdvanceNotFoundError
    |   +-- SalaryRecordNotFoundError
    |
    +-- ConcurrencyError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|---------------------------------------
Validation   | VALIDATION_ERROR            | Malformed or out-of-range input
             | INVALID_SCHEDULE_INPUT      | Custom schedule without a positive value
-------------|-----------------------------|---------------------------------------
Arithmetic   | DIVISION_BY_ZERO            | Pro-rating with working_days == 0
-------------|-----------------------------|---------------------------------------
Lifecycle    | INVALID_STATE_TRANSITION    | Action not allowed from current status
-------------|-----------------------------|---------------------------------------
Conflict     | OUTSTANDING_ADVANCE_EXISTS  | Employee already has pending/approved advance
             | DUPLICATE_SALARY_RECORD     | (employee, month, year) already exists
-------------|-----------------------------|---------------------------------------
Settlement   | SETTLEMENT_FAILED           | Batch deduction aborted; nothing applied
-------------|-----------------------------|---------------------------------------
Not found    | ADVANCE_NOT_FOUND           | Advance id does not exist
             | SALARY_RECORD_NOT_FOUND     | Salary record id does not exist
-------------|-----------------------------|---------------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT    | Row changed between read and write

===============================================================================
HANDLING PATTERNS
===============================================================================

1. VALIDATION and CONFLICT errors are user-facing. Never retry automatically.

2. SETTLEMENT_FAILED means the whole batch was discarded. Retry the whole
   settlement for the salary record after fixing the failing advance; never
   resume part-way through the list:

    except SettlementFailedError as e:
        log.error("settlement_failed", extra={"advance_id": e.advance_id})

3. OPTIMISTIC_LOCK_CONFLICT means another writer won. Reload and decide again.
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Validation exceptions


class ValidationError(PayrollKernelError):
    """Input is malformed or out of range."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, value: object = None):
        self.field = field
        self.reason = reason
        self.value = value
        super().__init__(f"Invalid {field}: {reason}")


class InvalidScheduleInputError(ValidationError):
    """A deduction schedule cannot produce a monthly deduction."""

    code: str = "INVALID_SCHEDULE_INPUT"

    def __init__(self, schedule: str, reason: str, value: object = None):
        self.schedule = schedule
        super().__init__("monthly_deduction", f"{reason} (schedule={schedule})", value)


class DivisionByZeroError(PayrollKernelError):
    """A per-day rate was requested for a period with zero working days."""

    code: str = "DIVISION_BY_ZERO"

    def __init__(self, operation: str, field: str):
        self.operation = operation
        self.field = field
        super().__init__(f"Cannot {operation}: {field} is zero")


# Lifecycle exceptions


class LifecycleError(PayrollKernelError):
    """Base exception for status lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidStateTransitionError(LifecycleError):
    """An action was attempted from a status that forbids it."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_status: str,
        action: str,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} {entity_type} {entity_id} in status '{current_status}'"
        )


# Conflict exceptions


class ConflictError(PayrollKernelError):
    """Base exception for uniqueness / exclusivity conflicts."""

    code: str = "CONFLICT"


class OutstandingAdvanceExistsError(ConflictError):
    """
    Employee already has an advance that is pending or approved.

    At most one unpaid advance per employee may exist at a time.
    """

    code: str = "OUTSTANDING_ADVANCE_EXISTS"

    def __init__(self, employee_id: str, advance_id: str | None = None, status: str | None = None):
        self.employee_id = employee_id
        self.advance_id = advance_id
        self.status = status
        detail = f" ({advance_id} is {status})" if advance_id else ""
        super().__init__(
            f"Employee {employee_id} already has an outstanding advance request{detail}"
        )


class DuplicateSalaryRecordError(ConflictError):
    """A salary record already exists for this employee and month."""

    code: str = "DUPLICATE_SALARY_RECORD"

    def __init__(self, employee_id: str, month: str, year: int):
        self.employee_id = employee_id
        self.month = month
        self.year = year
        super().__init__(
            f"Salary record already exists for employee {employee_id} in {year}-{month}"
        )


# Settlement exceptions


class SettlementError(PayrollKernelError):
    """Base exception for settlement errors."""

    code: str = "SETTLEMENT_ERROR"


class SettlementFailedError(SettlementError):
    """
    Applying advance deductions to a salary record failed part-way.

    The whole batch is discarded. ``index`` is the position (in settlement
    order) of the advance that failed; ``advance_id`` identifies it.
    """

    code: str = "SETTLEMENT_FAILED"

    def __init__(
        self,
        salary_record_id: str,
        advance_id: str,
        index: int,
        cause: str,
    ):
        self.salary_record_id = salary_record_id
        self.advance_id = advance_id
        self.index = index
        self.cause = cause
        super().__init__(
            f"Settlement of salary record {salary_record_id} failed at advance "
            f"{advance_id} (index {index}): {cause}"
        )


# Lookup exceptions


class NotFoundError(PayrollKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class AdvanceNotFoundError(NotFoundError):
    """Advance with given ID was not found."""

    code: str = "ADVANCE_NOT_FOUND"

    def __init__(self, advance_id: str):
        self.advance_id = advance_id
        super().__init__(f"Advance salary request not found: {advance_id}")


class SalaryRecordNotFoundError(NotFoundError):
    """Salary record with given ID was not found."""

    code: str = "SALARY_RECORD_NOT_FOUND"

    def __init__(self, salary_record_id: str):
        self.salary_record_id = salary_record_id
        super().__init__(f"Salary record not found: {salary_record_id}")


# Concurrency-related exceptions


class ConcurrencyError(PayrollKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
