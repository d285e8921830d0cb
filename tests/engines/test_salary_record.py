"""
Tests for the salary record calculator.

Tests cover:
- compute_salary_record: validation, derivation consistency, month normalization
- update_salary_inputs: draft-only edits, re-derivation
- apply_pro_rating: scaling, full attendance, zero working days
- add_advance_deduction: totals move together, duplicate guard
- Status transitions: approve, pay, cancel
- payslip_data / summarize_salaries projections
"""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_engines.salary_record import (
    add_advance_deduction,
    apply_pro_rating,
    approve_salary_record,
    cancel_salary_record,
    compute_salary_record,
    mark_salary_paid,
    payslip_data,
    summarize_salaries,
    update_salary_inputs,
)
from payroll_kernel.domain.salary import (
    Allowances,
    Deductions,
    Overtime,
    PaymentMethod,
    SalaryInputs,
    SalaryStatus,
)
from payroll_kernel.exceptions import (
    DivisionByZeroError,
    InvalidStateTransitionError,
    ValidationError,
)

NOW = datetime(2024, 1, 31, 9, 0, tzinfo=UTC)


# =========================================================================
# Factory helpers
# =========================================================================


def make_inputs(**overrides) -> SalaryInputs:
    fields = dict(
        employee_id="EMP-001",
        employee_name="Test Employee",
        month="01",
        year=2024,
        basic_salary=Decimal("3000"),
        working_days=22,
        present_days=22,
        allowances=Allowances(),
        deductions=Deductions(),
        overtime=Overtime(),
    )
    fields.update(overrides)
    return SalaryInputs(**fields)


def assert_consistent(record):
    assert record.total_salary == (
        record.basic_salary + record.allowances.total + record.overtime.amount
    )
    assert record.net_salary == record.total_salary - record.deductions.total
    assert record.absent_days == record.working_days - record.present_days


# =========================================================================
# 1. compute_salary_record
# =========================================================================


class TestComputeSalaryRecord:
    """Tests for compute_salary_record."""

    def test_basic_only(self):
        record = compute_salary_record(make_inputs())

        assert record.total_salary == Decimal("3000")
        assert record.net_salary == Decimal("3000")
        assert record.status == SalaryStatus.DRAFT
        assert_consistent(record)

    def test_full_derivation(self):
        """Allowances and overtime add, deductions subtract."""
        record = compute_salary_record(make_inputs(
            allowances=Allowances(hra=Decimal("500"), transport=Decimal("100"), bonus=Decimal("50")),
            deductions=Deductions(pf=Decimal("200"), tax=Decimal("150")),
            overtime=Overtime(hours=Decimal("10"), rate=Decimal("25")),
            present_days=20,
        ))

        assert record.allowances.total == Decimal("650")
        assert record.overtime.amount == Decimal("250")
        assert record.total_salary == Decimal("3900")
        assert record.deductions.total == Decimal("350")
        assert record.net_salary == Decimal("3550")
        assert record.absent_days == 2
        assert_consistent(record)

    def test_integer_month_is_zero_padded(self):
        record = compute_salary_record(make_inputs(month=3))

        assert record.month == "03"
        assert record.month_key == "2024-03"

    def test_present_greater_than_working_fails(self):
        """Negative absent days is rejected, never clamped."""
        with pytest.raises(ValidationError) as exc_info:
            compute_salary_record(make_inputs(working_days=20, present_days=21))

        assert exc_info.value.field == "present_days"

    def test_negative_basic_fails(self):
        with pytest.raises(ValidationError):
            compute_salary_record(make_inputs(basic_salary=Decimal("-1")))

    def test_negative_component_fails(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_salary_record(make_inputs(allowances=Allowances(hra=Decimal("-5"))))

        assert exc_info.value.field == "allowances.hra"

    def test_working_days_above_31_fails(self):
        with pytest.raises(ValidationError):
            compute_salary_record(make_inputs(working_days=32, present_days=0))

    def test_year_before_minimum_fails(self):
        with pytest.raises(ValidationError):
            compute_salary_record(make_inputs(year=2019))

    def test_configurable_minimum_year(self):
        record = compute_salary_record(make_inputs(year=2019), min_year=2015)
        assert record.year == 2019

    def test_invalid_month_fails(self):
        with pytest.raises(ValidationError):
            compute_salary_record(make_inputs(month="13"))

    def test_missing_employee_fails(self):
        with pytest.raises(ValidationError):
            compute_salary_record(make_inputs(employee_id="  "))

    def test_deductions_may_exceed_total(self):
        """Net salary may go negative; it is still derived, not clamped."""
        record = compute_salary_record(make_inputs(
            basic_salary=Decimal("100"),
            deductions=Deductions(other=Decimal("150")),
        ))
        assert record.net_salary == Decimal("-50")


# =========================================================================
# 2. update_salary_inputs
# =========================================================================


class TestUpdateSalaryInputs:
    """Tests for update_salary_inputs."""

    def test_update_rederives(self):
        record = compute_salary_record(make_inputs())

        updated = update_salary_inputs(
            record,
            basic_salary=Decimal("3500"),
            deductions=Deductions(tax=Decimal("100")),
        )

        assert updated.total_salary == Decimal("3500")
        assert updated.net_salary == Decimal("3400")
        assert_consistent(updated)

    def test_update_days(self):
        record = compute_salary_record(make_inputs())
        updated = update_salary_inputs(record, present_days=20)
        assert updated.absent_days == 2

    def test_update_rejects_unknown_field(self):
        record = compute_salary_record(make_inputs())
        with pytest.raises(ValidationError):
            update_salary_inputs(record, net_salary=Decimal("1"))

    def test_update_requires_draft(self):
        record = approve_salary_record(compute_salary_record(make_inputs()), "mgr", NOW)
        with pytest.raises(InvalidStateTransitionError):
            update_salary_inputs(record, basic_salary=Decimal("1"))

    def test_update_cannot_drop_settled_advance(self):
        record = add_advance_deduction(
            compute_salary_record(make_inputs()), uuid4(), Decimal("300")
        )
        with pytest.raises(ValidationError):
            update_salary_inputs(record, deductions=Deductions(tax=Decimal("10")))


# =========================================================================
# 3. apply_pro_rating
# =========================================================================


class TestApplyProRating:
    """Tests for apply_pro_rating."""

    def test_scales_basic_salary(self):
        record = compute_salary_record(make_inputs(working_days=30, present_days=15))

        prorated = apply_pro_rating(record)

        assert prorated.basic_salary == Decimal("1500.00")
        assert prorated.total_salary == Decimal("1500.00")
        assert_consistent(prorated)

    def test_full_attendance_unchanged(self):
        record = compute_salary_record(make_inputs())
        assert apply_pro_rating(record) == record

    def test_zero_working_days_fails_explicitly(self):
        record = compute_salary_record(make_inputs(working_days=0, present_days=0))

        with pytest.raises(DivisionByZeroError) as exc_info:
            apply_pro_rating(record)

        assert exc_info.value.field == "working_days"


# =========================================================================
# 4. add_advance_deduction
# =========================================================================


class TestAddAdvanceDeduction:
    """Tests for add_advance_deduction."""

    def test_totals_move_together(self):
        record = compute_salary_record(make_inputs(deductions=Deductions(pf=Decimal("100"))))
        advance_id = uuid4()

        updated = add_advance_deduction(record, advance_id, Decimal("300"), "Jan recovery")

        assert updated.deductions.advance == Decimal("300")
        assert updated.deductions.total == Decimal("400")
        assert updated.net_salary == record.net_salary - Decimal("300")
        assert updated.advance_deductions[0].advance_id == advance_id
        assert updated.advance_deductions[0].description == "Jan recovery"
        assert_consistent(updated)

    def test_same_advance_twice_fails(self):
        advance_id = uuid4()
        record = add_advance_deduction(
            compute_salary_record(make_inputs()), advance_id, Decimal("10")
        )
        with pytest.raises(ValidationError):
            add_advance_deduction(record, advance_id, Decimal("10"))

    def test_non_positive_amount_fails(self):
        with pytest.raises(ValidationError):
            add_advance_deduction(compute_salary_record(make_inputs()), uuid4(), Decimal("0"))

    def test_requires_draft(self):
        record = cancel_salary_record(compute_salary_record(make_inputs()))
        with pytest.raises(InvalidStateTransitionError):
            add_advance_deduction(record, uuid4(), Decimal("10"))


# =========================================================================
# 5. Status transitions
# =========================================================================


class TestSalaryTransitions:
    """Tests for approve / pay / cancel."""

    def test_approve_then_pay(self):
        record = compute_salary_record(make_inputs())

        approved = approve_salary_record(record, "mgr-1", NOW, "Manager One")
        paid = mark_salary_paid(approved, NOW, "cheque", "CHQ-77")

        assert approved.status == SalaryStatus.APPROVED
        assert approved.approved_by == "mgr-1"
        assert approved.approved_by_name == "Manager One"
        assert paid.status == SalaryStatus.PAID
        assert paid.payment_method == PaymentMethod.CHEQUE
        assert paid.payment_reference == "CHQ-77"
        assert paid.paid_at == NOW
        assert paid.is_terminal

    def test_pay_draft_fails(self):
        with pytest.raises(InvalidStateTransitionError):
            mark_salary_paid(compute_salary_record(make_inputs()), NOW)

    def test_unknown_payment_method_fails(self):
        approved = approve_salary_record(compute_salary_record(make_inputs()), "mgr", NOW)
        with pytest.raises(ValidationError):
            mark_salary_paid(approved, NOW, "crypto")

    def test_cancel_paid_fails(self):
        approved = approve_salary_record(compute_salary_record(make_inputs()), "mgr", NOW)
        paid = mark_salary_paid(approved, NOW)
        with pytest.raises(InvalidStateTransitionError):
            cancel_salary_record(paid)

    def test_cancel_approved(self):
        approved = approve_salary_record(compute_salary_record(make_inputs()), "mgr", NOW)
        cancelled = cancel_salary_record(approved, notes="duplicate run")
        assert cancelled.status == SalaryStatus.CANCELLED
        assert cancelled.notes == "duplicate run"

    def test_approve_twice_fails(self):
        approved = approve_salary_record(compute_salary_record(make_inputs()), "mgr", NOW)
        with pytest.raises(InvalidStateTransitionError):
            approve_salary_record(approved, "mgr", NOW)


# =========================================================================
# 6. Projections
# =========================================================================


class TestProjections:
    """Tests for payslip_data and summarize_salaries."""

    def test_payslip_data(self):
        record = add_advance_deduction(
            compute_salary_record(make_inputs(allowances=Allowances(hra=Decimal("500")))),
            uuid4(),
            Decimal("300"),
        )

        slip = payslip_data(record)

        assert slip["employee"]["id"] == "EMP-001"
        assert slip["period"]["month_key"] == "2024-01"
        assert slip["earnings"]["total"] == "3500"
        assert slip["deductions"]["advance"] == "300"
        assert slip["net_salary"] == "3200"
        assert len(slip["advance_deductions"]) == 1

    def _paid(self, **overrides):
        record = compute_salary_record(make_inputs(**overrides))
        return mark_salary_paid(approve_salary_record(record, "mgr", NOW), NOW)

    def test_summary_counts_paid_records_in_range(self):
        records = [
            self._paid(employee_id="A", month="01"),
            self._paid(employee_id="B", month="02", basic_salary=Decimal("2000")),
            self._paid(employee_id="A", month="05"),
            compute_salary_record(make_inputs(employee_id="C", month="01")),
        ]

        summary = summarize_salaries(records, "2024-01", "2024-03")

        assert summary.total_salary_paid == Decimal("5000")
        assert summary.total_employees == 2
        assert summary.average_salary == Decimal("2500.00")
        assert summary.total_advance_deductions == Decimal("0")

    def test_summary_includes_advance_deductions(self):
        record = add_advance_deduction(
            compute_salary_record(make_inputs()), uuid4(), Decimal("300")
        )
        paid = mark_salary_paid(approve_salary_record(record, "mgr", NOW), NOW)

        summary = summarize_salaries([paid], "2024-01", "2024-01")

        assert summary.total_advance_deductions == Decimal("300")
        assert summary.total_salary_paid == Decimal("2700")

    def test_empty_summary(self):
        summary = summarize_salaries([], "2024-01", "2024-12")
        assert summary.total_employees == 0
        assert summary.average_salary == Decimal("0")

    def test_reversed_range_fails(self):
        with pytest.raises(ValidationError):
            summarize_salaries([], "2024-05", "2024-01")
