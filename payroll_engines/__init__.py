"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure payroll
    calculation engines.  This is the import surface for payroll_modules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel (domain, exceptions, logging) and sibling
    engine modules.  MUST NOT import payroll_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()``.  Timestamps are passed in
      by the caller.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine`` (see
    ``payroll_engines.tracer``) and emit PAYROLL_ENGINE_TRACE records.
"""

from payroll_engines.advance_lifecycle import (
    apply_deduction,
    approve_advance,
    check_deletable,
    find_outstanding_advance,
    is_eligible_for_deduction,
    mark_advance_paid,
    reject_advance,
    request_advance,
    update_advance,
)
from payroll_engines.salary_record import (
    add_advance_deduction,
    apply_pro_rating,
    approve_salary_record,
    cancel_salary_record,
    compute_salary_record,
    derive_salary_record,
    mark_salary_paid,
    payslip_data,
    summarize_salaries,
    update_salary_inputs,
)
from payroll_engines.schedule import (
    add_months,
    compare_month_keys,
    derive_monthly_deduction,
    installment_count,
    month_key,
    normalize_month,
    parse_month_key,
    pro_rate,
    round_money,
    to_decimal,
)
from payroll_engines.settlement import (
    SettlementResult,
    get_pending_advances,
    get_total_outstanding,
    settle_advances_for_period,
    summarize_advances,
)
from payroll_engines.tracer import traced_engine

__all__ = [
    # Schedule utilities
    "add_months",
    "compare_month_keys",
    "derive_monthly_deduction",
    "installment_count",
    "month_key",
    "normalize_month",
    "parse_month_key",
    "pro_rate",
    "round_money",
    "to_decimal",
    # Salary record
    "add_advance_deduction",
    "apply_pro_rating",
    "approve_salary_record",
    "cancel_salary_record",
    "compute_salary_record",
    "derive_salary_record",
    "mark_salary_paid",
    "payslip_data",
    "summarize_salaries",
    "update_salary_inputs",
    # Advance lifecycle
    "apply_deduction",
    "approve_advance",
    "check_deletable",
    "find_outstanding_advance",
    "is_eligible_for_deduction",
    "mark_advance_paid",
    "reject_advance",
    "request_advance",
    "update_advance",
    # Settlement
    "SettlementResult",
    "get_pending_advances",
    "get_total_outstanding",
    "settle_advances_for_period",
    "summarize_advances",
    # Tracing
    "traced_engine",
]
