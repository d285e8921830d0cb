"""
Salary ORM Persistence Models (``payroll_modules.salary.orm``).

Responsibility:
    SQLAlchemy ORM models that persist the frozen domain objects defined in
    ``payroll_kernel.domain``.  Each ORM class mirrors a domain object and
    provides ``to_dto()`` / ``from_dto()`` round-trip conversion, plus
    ``apply_dto()`` to copy a transformed domain object back onto a loaded
    row.

Architecture position:
    **Modules layer** -- persistence companions to the pure domain objects.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK, auto-generated), created_at, updated_at,
    created_by_id (NOT NULL UUID), updated_by_id (nullable UUID).

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - Enum fields stored as String(50) containing the enum .value string.
    - One salary record per (employee_id, month, year)
      (uq_payroll_salary_employee_period).
    - At most one pending/approved advance per employee
      (uq_payroll_advance_outstanding_employee, a partial unique index).
    - ``version`` increments on every status-changing write; the service
      uses it for compare-and-swap updates.
"""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops the offset; every stored timestamp is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


_OUTSTANDING_WHERE = text("status IN ('pending', 'approved')")


# ---------------------------------------------------------------------------
# AdvanceSalaryModel
# ---------------------------------------------------------------------------

class AdvanceSalaryModel(TrackedBase):
    """
    ORM model for ``AdvanceSalary`` -- one salary advance for one employee.

    Guarantees:
        - ``status``, ``deduction_schedule`` and ``payment_method`` store
          enum .value strings.
        - Only one row per employee may be pending or approved.
    """

    __tablename__ = "payroll_advance_salaries"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    requested_at: Mapped[datetime | None] = mapped_column(nullable=True)
    deduction_schedule: Mapped[str] = mapped_column(String(50), nullable=False)
    monthly_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    total_deducted: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(nullable=False)
    approved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    deduction_start_month: Mapped[str | None] = mapped_column(String(7), nullable=True)
    deduction_end_month: Mapped[str | None] = mapped_column(String(7), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(nullable=False, default=1)

    __table_args__ = (
        Index(
            "uq_payroll_advance_outstanding_employee",
            "employee_id",
            unique=True,
            sqlite_where=_OUTSTANDING_WHERE,
            postgresql_where=_OUTSTANDING_WHERE,
        ),
        Index("idx_payroll_advance_employee_status", "employee_id", "status"),
        Index("idx_payroll_advance_requested_at", "requested_at"),
    )

    def to_dto(self):
        from payroll_kernel.domain.advance import (
            AdvanceSalary,
            AdvanceStatus,
            DeductionSchedule,
        )
        from payroll_kernel.domain.salary import PaymentMethod
        return AdvanceSalary(
            id=self.id,
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            amount=self.amount,
            reason=self.reason,
            status=AdvanceStatus(self.status),
            requested_at=_aware(self.requested_at),
            deduction_schedule=DeductionSchedule(self.deduction_schedule),
            monthly_deduction=self.monthly_deduction,
            total_deducted=self.total_deducted,
            remaining_amount=self.remaining_amount,
            approved_by=self.approved_by,
            approved_by_name=self.approved_by_name,
            approved_at=_aware(self.approved_at),
            rejection_reason=self.rejection_reason,
            payment_date=_aware(self.payment_date),
            payment_method=PaymentMethod(self.payment_method) if self.payment_method else None,
            deduction_start_month=self.deduction_start_month,
            deduction_end_month=self.deduction_end_month,
            notes=self.notes,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "AdvanceSalaryModel":
        model = cls(id=dto.id, created_by_id=created_by_id)
        model.apply_dto(dto)
        model.version = dto.version
        return model

    @staticmethod
    def column_values(dto) -> dict:
        """Column -> value mapping for every mutable field of ``dto``."""
        return {
            "employee_id": dto.employee_id,
            "employee_name": dto.employee_name,
            "amount": dto.amount,
            "reason": dto.reason,
            "status": dto.status.value,
            "requested_at": dto.requested_at,
            "deduction_schedule": dto.deduction_schedule.value,
            "monthly_deduction": dto.monthly_deduction,
            "total_deducted": dto.total_deducted,
            "remaining_amount": dto.remaining_amount,
            "approved_by": dto.approved_by,
            "approved_by_name": dto.approved_by_name,
            "approved_at": dto.approved_at,
            "rejection_reason": dto.rejection_reason,
            "payment_date": dto.payment_date,
            "payment_method": dto.payment_method.value if dto.payment_method else None,
            "deduction_start_month": dto.deduction_start_month,
            "deduction_end_month": dto.deduction_end_month,
            "notes": dto.notes,
        }

    def apply_dto(self, dto) -> None:
        """Copy every mutable field of ``dto`` onto this row."""
        for name, value in self.column_values(dto).items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        return (
            f"<AdvanceSalaryModel {self.employee_id}: {self.amount} "
            f"({self.status}) remaining={self.remaining_amount}>"
        )


# ---------------------------------------------------------------------------
# SalaryRecordModel
# ---------------------------------------------------------------------------

class SalaryRecordModel(TrackedBase):
    """
    ORM model for ``SalaryRecord`` -- one employee-month of payroll.

    Contract:
        Allowance and deduction components are stored as flat columns.
        Derived totals are stored as computed by the engine so that
        reporting queries never recompute them.  The ``advance_deductions``
        relationship holds the ordered settlement lines.
    """

    __tablename__ = "payroll_salary_records"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    month: Mapped[str] = mapped_column(String(2), nullable=False)
    year: Mapped[int] = mapped_column(nullable=False)
    basic_salary: Mapped[Decimal] = mapped_column(nullable=False)

    allowance_hra: Mapped[Decimal] = mapped_column(nullable=False)
    allowance_transport: Mapped[Decimal] = mapped_column(nullable=False)
    allowance_medical: Mapped[Decimal] = mapped_column(nullable=False)
    allowance_bonus: Mapped[Decimal] = mapped_column(nullable=False)
    allowance_other: Mapped[Decimal] = mapped_column(nullable=False)

    deduction_pf: Mapped[Decimal] = mapped_column(nullable=False)
    deduction_esi: Mapped[Decimal] = mapped_column(nullable=False)
    deduction_tax: Mapped[Decimal] = mapped_column(nullable=False)
    deduction_advance: Mapped[Decimal] = mapped_column(nullable=False)
    deduction_other: Mapped[Decimal] = mapped_column(nullable=False)

    overtime_hours: Mapped[Decimal] = mapped_column(nullable=False)
    overtime_rate: Mapped[Decimal] = mapped_column(nullable=False)

    working_days: Mapped[int] = mapped_column(nullable=False)
    present_days: Mapped[int] = mapped_column(nullable=False)
    absent_days: Mapped[int] = mapped_column(nullable=False)
    total_salary: Mapped[Decimal] = mapped_column(nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(nullable=False)

    status: Mapped[str] = mapped_column(String(50), nullable=False)
    approved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(nullable=False, default=1)

    advance_deductions: Mapped[list["SalaryAdvanceDeductionModel"]] = relationship(
        "SalaryAdvanceDeductionModel",
        back_populates="salary_record",
        cascade="all, delete-orphan",
        order_by="SalaryAdvanceDeductionModel.line_number",
    )

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "month", "year",
            name="uq_payroll_salary_employee_period",
        ),
        Index("idx_payroll_salary_status", "status"),
        Index("idx_payroll_salary_period", "year", "month"),
    )

    def to_dto(self):
        from payroll_kernel.domain.salary import (
            Allowances,
            Deductions,
            Overtime,
            PaymentMethod,
            SalaryRecord,
            SalaryStatus,
        )
        return SalaryRecord(
            id=self.id,
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            month=self.month,
            year=self.year,
            basic_salary=self.basic_salary,
            allowances=Allowances(
                hra=self.allowance_hra,
                transport=self.allowance_transport,
                medical=self.allowance_medical,
                bonus=self.allowance_bonus,
                other=self.allowance_other,
            ),
            deductions=Deductions(
                pf=self.deduction_pf,
                esi=self.deduction_esi,
                tax=self.deduction_tax,
                advance=self.deduction_advance,
                other=self.deduction_other,
            ),
            overtime=Overtime(hours=self.overtime_hours, rate=self.overtime_rate),
            working_days=self.working_days,
            present_days=self.present_days,
            absent_days=self.absent_days,
            total_salary=self.total_salary,
            net_salary=self.net_salary,
            status=SalaryStatus(self.status),
            advance_deductions=tuple(line.to_dto() for line in self.advance_deductions),
            approved_by=self.approved_by,
            approved_by_name=self.approved_by_name,
            approved_at=_aware(self.approved_at),
            paid_at=_aware(self.paid_at),
            payment_method=PaymentMethod(self.payment_method),
            payment_reference=self.payment_reference,
            notes=self.notes,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "SalaryRecordModel":
        model = cls(id=dto.id, created_by_id=created_by_id)
        model.apply_dto(dto, created_by_id)
        model.version = dto.version
        return model

    @staticmethod
    def column_values(dto) -> dict:
        """Column -> value mapping for every scalar field of ``dto``."""
        values = {
            "employee_id": dto.employee_id,
            "employee_name": dto.employee_name,
            "month": dto.month,
            "year": dto.year,
            "basic_salary": dto.basic_salary,
            "overtime_hours": dto.overtime.hours,
            "overtime_rate": dto.overtime.rate,
            "working_days": dto.working_days,
            "present_days": dto.present_days,
            "absent_days": dto.absent_days,
            "total_salary": dto.total_salary,
            "net_salary": dto.net_salary,
            "status": dto.status.value,
            "approved_by": dto.approved_by,
            "approved_by_name": dto.approved_by_name,
            "approved_at": dto.approved_at,
            "paid_at": dto.paid_at,
            "payment_method": dto.payment_method.value,
            "payment_reference": dto.payment_reference,
            "notes": dto.notes,
        }
        for name in dto.allowances.FIELDS:
            values[f"allowance_{name}"] = getattr(dto.allowances, name)
        for name in dto.deductions.FIELDS:
            values[f"deduction_{name}"] = getattr(dto.deductions, name)
        return values

    def apply_dto(self, dto, actor_id: UUID) -> None:
        """Copy ``dto`` onto this row, appending any new deduction lines."""
        for name, value in self.column_values(dto).items():
            setattr(self, name, value)

        # Deduction lines are append-only.
        existing = len(self.advance_deductions)
        for number, line in enumerate(dto.advance_deductions[existing:], start=existing + 1):
            self.advance_deductions.append(
                SalaryAdvanceDeductionModel.from_dto(line, number, actor_id)
            )

    def __repr__(self) -> str:
        return (
            f"<SalaryRecordModel {self.employee_id} {self.year}-{self.month}: "
            f"net={self.net_salary} ({self.status})>"
        )


# ---------------------------------------------------------------------------
# SalaryAdvanceDeductionModel
# ---------------------------------------------------------------------------

class SalaryAdvanceDeductionModel(TrackedBase):
    """
    ORM model for ``AdvanceDeduction`` -- one advance recovery line on a
    salary record.

    Guarantees:
        - An advance appears at most once per salary record
          (uq_payroll_salary_advance_line).
        - ``line_number`` preserves settlement order.
    """

    __tablename__ = "payroll_salary_advance_deductions"

    salary_record_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_salary_records.id"), nullable=False,
    )
    advance_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_advance_salaries.id"), nullable=False,
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    salary_record: Mapped["SalaryRecordModel"] = relationship(
        "SalaryRecordModel", back_populates="advance_deductions",
    )

    __table_args__ = (
        UniqueConstraint(
            "salary_record_id", "advance_id",
            name="uq_payroll_salary_advance_line",
        ),
        Index("idx_payroll_salary_advance_line_advance", "advance_id"),
    )

    def to_dto(self):
        from payroll_kernel.domain.salary import AdvanceDeduction
        return AdvanceDeduction(
            advance_id=self.advance_id,
            amount=self.amount,
            description=self.description,
        )

    @classmethod
    def from_dto(
        cls, dto, line_number: int, created_by_id: UUID,
    ) -> "SalaryAdvanceDeductionModel":
        return cls(
            advance_id=dto.advance_id,
            line_number=line_number,
            amount=dto.amount,
            description=dto.description,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<SalaryAdvanceDeductionModel #{self.line_number} "
            f"advance={self.advance_id} amount={self.amount}>"
        )
