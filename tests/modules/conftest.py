"""
Shared fixtures for salary module tests.

DESIGN RULE: Every fixture is opt-in.  No autouse.  Each test explicitly
declares what it depends on in its function signature.
"""

from decimal import Decimal

import pytest

from payroll_kernel.domain.advance import DeductionSchedule
from payroll_kernel.domain.salary import SalaryInputs

TEST_EMPLOYEE_ID = "EMP-001"


def make_salary_inputs(**overrides) -> SalaryInputs:
    """Salary inputs for TEST_EMPLOYEE_ID, January 2024, full attendance."""
    fields = dict(
        employee_id=TEST_EMPLOYEE_ID,
        employee_name="Jane Doe",
        month="01",
        year=2024,
        basic_salary=Decimal("3000"),
        working_days=22,
        present_days=22,
    )
    fields.update(overrides)
    return SalaryInputs(**fields)


@pytest.fixture
def paid_advance_factory(salary_service, test_actor_id):
    """Request, approve and pay an advance through the service."""

    def _make(
        amount="300",
        schedule=DeductionSchedule.SINGLE_MONTH,
        custom_monthly=None,
        start_month="2024-01",
        employee_id=TEST_EMPLOYEE_ID,
    ):
        advance = salary_service.request_advance(
            employee_id=employee_id,
            amount=Decimal(amount),
            reason="Medical emergency",
            actor_id=test_actor_id,
            schedule=schedule,
            custom_monthly=custom_monthly,
        )
        salary_service.approve_advance(advance.id, actor_id=test_actor_id)
        return salary_service.mark_advance_paid(
            advance.id, actor_id=test_actor_id, deduction_start_month=start_month,
        )

    return _make
