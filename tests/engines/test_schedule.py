"""
Tests for the money and deduction-schedule utilities.

Tests cover:
- derive_monthly_deduction: divisor table, cent rounding, custom schedules
- installment_count: number of months needed to recover an advance
- month_key / normalize_month / parse_month_key / compare_month_keys / add_months
- to_decimal / round_money / pro_rate
"""

from decimal import Decimal

import pytest

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
from payroll_kernel.domain.advance import DeductionSchedule
from payroll_kernel.exceptions import (
    DivisionByZeroError,
    InvalidScheduleInputError,
    ValidationError,
)


# =========================================================================
# 1. derive_monthly_deduction
# =========================================================================


class TestDeriveMonthlyDeduction:
    """Tests for derive_monthly_deduction."""

    def test_single_month_is_full_amount(self):
        assert derive_monthly_deduction(Decimal("300"), DeductionSchedule.SINGLE_MONTH) == Decimal("300")

    def test_two_months_halves(self):
        """100 over two months -> 50."""
        assert derive_monthly_deduction(Decimal("100"), DeductionSchedule.TWO_MONTHS) == Decimal("50")

    def test_three_months_thirds(self):
        """300 over three months -> 100."""
        assert derive_monthly_deduction(Decimal("300"), DeductionSchedule.THREE_MONTHS) == Decimal("100")

    def test_uneven_third_rounds_up_to_cent(self):
        """100 / 3 rounds up so three installments cover the amount."""
        monthly = derive_monthly_deduction(Decimal("100"), DeductionSchedule.THREE_MONTHS)

        assert monthly == Decimal("33.34")
        assert installment_count(Decimal("100"), monthly) == 3

    def test_custom_uses_supplied_value(self):
        monthly = derive_monthly_deduction(
            Decimal("250"), DeductionSchedule.CUSTOM, Decimal("100")
        )
        assert monthly == Decimal("100")

    def test_custom_without_value_fails(self):
        with pytest.raises(InvalidScheduleInputError) as exc_info:
            derive_monthly_deduction(Decimal("250"), DeductionSchedule.CUSTOM)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.code == "INVALID_SCHEDULE_INPUT"

    def test_custom_with_zero_fails(self):
        with pytest.raises(InvalidScheduleInputError):
            derive_monthly_deduction(Decimal("250"), DeductionSchedule.CUSTOM, Decimal("0"))

    def test_schedule_accepts_string_value(self):
        assert derive_monthly_deduction(Decimal("100"), "two_months") == Decimal("50")

    def test_unknown_schedule_fails(self):
        with pytest.raises(ValidationError):
            derive_monthly_deduction(Decimal("100"), "weekly")

    def test_non_positive_amount_fails(self):
        with pytest.raises(ValidationError):
            derive_monthly_deduction(Decimal("0"), DeductionSchedule.SINGLE_MONTH)


class TestInstallmentCount:
    """Tests for installment_count."""

    def test_exact_division(self):
        assert installment_count(Decimal("300"), Decimal("100")) == 3

    def test_partial_final_installment(self):
        """250 at 100 per month -> 100, 100, 50."""
        assert installment_count(Decimal("250"), Decimal("100")) == 3

    def test_monthly_larger_than_amount(self):
        assert installment_count(Decimal("50"), Decimal("100")) == 1

    def test_zero_monthly_fails(self):
        with pytest.raises(ValidationError):
            installment_count(Decimal("50"), Decimal("0"))


# =========================================================================
# 2. Month keys
# =========================================================================


class TestMonthKeys:
    """Tests for month key construction, parsing and comparison."""

    def test_month_key_zero_pads(self):
        assert month_key(2024, 1) == "2024-01"
        assert month_key(2024, "3") == "2024-03"
        assert month_key(2024, "11") == "2024-11"

    @pytest.mark.parametrize("month", [0, 13, "abc", "", True])
    def test_normalize_month_rejects_out_of_range(self, month):
        with pytest.raises(ValidationError):
            normalize_month(month)

    def test_parse_month_key(self):
        assert parse_month_key("2024-02") == (2024, 2)

    @pytest.mark.parametrize("key", [
        "2024-2", "24-02", "2024-13", "2024/02", "",
        "2024-01\n", " 2024-01", "\u0662\u0660\u0662\u0664-\u0660\u0661",
    ])
    def test_parse_month_key_rejects_malformed(self, key):
        with pytest.raises(ValidationError):
            parse_month_key(key)

    def test_compare_is_chronological(self):
        """Zero-padding makes lexical order chronological across the year boundary."""
        assert compare_month_keys("2024-02", "2024-10") == -1
        assert compare_month_keys("2024-12", "2025-01") == -1
        assert compare_month_keys("2024-05", "2024-05") == 0
        assert compare_month_keys("2025-01", "2024-12") == 1

    def test_add_months_rolls_over_year(self):
        assert add_months("2024-11", 2) == "2025-01"
        assert add_months("2024-01", 0) == "2024-01"
        assert add_months("2024-01", -1) == "2023-12"


# =========================================================================
# 3. Money helpers
# =========================================================================


class TestMoney:
    """Tests for to_decimal, round_money and pro_rate."""

    def test_to_decimal_accepts_int_and_str(self):
        assert to_decimal(5) == Decimal("5")
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(None) == Decimal("0")

    def test_to_decimal_rejects_float(self):
        with pytest.raises(ValidationError):
            to_decimal(1.5)

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(ValidationError):
            to_decimal("twelve")

    def test_to_decimal_rejects_nan(self):
        with pytest.raises(ValidationError):
            to_decimal(Decimal("NaN"))

    def test_round_money_half_up(self):
        assert round_money(Decimal("10.005")) == Decimal("10.01")
        assert round_money(Decimal("10.004")) == Decimal("10.00")

    def test_pro_rate(self):
        assert pro_rate(Decimal("3000"), 30, 15) == Decimal("1500.00")

    def test_pro_rate_zero_working_days(self):
        with pytest.raises(DivisionByZeroError):
            pro_rate(Decimal("3000"), 0, 0)
