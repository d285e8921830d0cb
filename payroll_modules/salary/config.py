"""
Salary & Advance Configuration Schema.

Defines the structure and sensible defaults for salary processing and
advance recovery.  Values may be overridden per deployment, either in code
or from a YAML file:

    config = SalaryConfig.from_yaml(Path("config/salary.yaml"))
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Self

import yaml

from payroll_kernel.domain.salary import PaymentMethod
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.salary.config")

VALID_PAYMENT_METHODS = {m.value for m in PaymentMethod}
DEFAULT_DEDUCTION_DESCRIPTION = "Advance salary deduction for {month_key}"


@dataclass
class SalaryConfig:
    """
    Configuration schema for the salary module.

        config = SalaryConfig(
            max_advance_amount=Decimal("50000"),
            auto_pro_rate=True,
        )
    """

    # Payroll calendar
    min_year: int = 2020
    max_working_days: int = 31

    # Payments
    allowed_payment_methods: frozenset[str] = field(
        default_factory=lambda: frozenset(VALID_PAYMENT_METHODS)
    )
    default_payment_method: str = PaymentMethod.BANK_TRANSFER.value

    # Advances
    max_advance_amount: Decimal | None = None
    advance_history_limit: int = 10
    deduction_description_template: str = DEFAULT_DEDUCTION_DESCRIPTION

    # Salary records
    auto_pro_rate: bool = False

    def __post_init__(self):
        if self.min_year < 1900:
            raise ValueError("min_year must be 1900 or later")
        if not 1 <= self.max_working_days <= 31:
            raise ValueError("max_working_days must be between 1 and 31")

        self.allowed_payment_methods = frozenset(self.allowed_payment_methods)
        unknown = self.allowed_payment_methods - VALID_PAYMENT_METHODS
        if unknown:
            raise ValueError(
                f"allowed_payment_methods must be a subset of {VALID_PAYMENT_METHODS}, "
                f"got {sorted(unknown)}"
            )
        if not self.allowed_payment_methods:
            raise ValueError("allowed_payment_methods cannot be empty")
        if self.default_payment_method not in self.allowed_payment_methods:
            raise ValueError(
                f"default_payment_method must be one of {sorted(self.allowed_payment_methods)}, "
                f"got '{self.default_payment_method}'"
            )

        if self.max_advance_amount is not None:
            self.max_advance_amount = Decimal(str(self.max_advance_amount))
            if self.max_advance_amount <= 0:
                raise ValueError("max_advance_amount must be positive")
        if self.advance_history_limit <= 0:
            raise ValueError("advance_history_limit must be positive")
        if "{month_key}" not in self.deduction_description_template:
            raise ValueError("deduction_description_template must contain {month_key}")

        logger.info(
            "salary_config_initialized",
            extra={
                "min_year": self.min_year,
                "max_working_days": self.max_working_days,
                "default_payment_method": self.default_payment_method,
                "max_advance_amount": (
                    str(self.max_advance_amount)
                    if self.max_advance_amount is not None else None
                ),
                "advance_history_limit": self.advance_history_limit,
                "auto_pro_rate": self.auto_pro_rate,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        logger.info("salary_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from database/file)."""
        logger.info(
            "salary_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        if "allowed_payment_methods" in data:
            data["allowed_payment_methods"] = frozenset(data["allowed_payment_methods"])
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path | str) -> Self:
        """Load config from a YAML file, optionally nested under ``salary:``.

        Raises:
            FileNotFoundError: the file does not exist.
            yaml.YAMLError: the file is not valid YAML.
            ValueError: a setting fails validation.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        return cls.from_dict(data.get("salary", data))
