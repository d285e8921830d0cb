"""
Salary Module Service (``payroll_modules.salary.service``).

Responsibility
--------------
Orchestrates salary records and salary advances -- record creation and
edits, approval and payment of both record types, advance deletion, and
settlement of paid advances against a month's salary -- by delegating pure
computation to ``payroll_engines`` and persisting the results through the
ORM models in ``payroll_modules.salary.orm``.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``SalaryService`` is the sole public entry
point for salary operations.  Engines never touch the session; this service
never does arithmetic.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on success,
  ``rollback`` and re-raise on any exception).
* Settlement writes the salary record, its deduction lines and every
  affected advance in ONE transaction.
* Settlement and advance requests for one employee are serialized: an
  in-process per-employee lock plus ``SELECT ... FOR UPDATE`` on the rows.
* Status changes are compare-and-swap writes on (id, status, version); a
  lost race raises ``OptimisticLockError`` and nothing is written.
* The partial unique index on outstanding advances and the unique
  (employee, month, year) constraint back the in-code checks; their
  ``IntegrityError`` is translated to the matching ``ConflictError``.

Failure modes
-------------
* Engine errors (``ValidationError``, ``InvalidStateTransitionError``,
  ``SettlementFailedError`` ...) -> session rolled back, error re-raised.
* Unknown ids -> ``AdvanceNotFoundError`` / ``SalaryRecordNotFoundError``.

Usage::

    service = SalaryService(session, clock=clock)
    advance = service.request_advance(
        employee_id="EMP-001", amount=Decimal("300"),
        reason="Medical", actor_id=actor_id,
    )
    service.approve_advance(advance.id, actor_id=manager_id)
    service.mark_advance_paid(advance.id, actor_id=manager_id,
                              deduction_start_month="2024-01")
    record = service.process_monthly_salary(inputs, actor_id=actor_id)
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from payroll_engines import advance_lifecycle, salary_record, settlement
from payroll_engines.schedule import normalize_month, parse_month_key
from payroll_engines.settlement import SettlementResult
from payroll_kernel.domain.advance import (
    AdvanceSalary,
    AdvanceStatus,
    AdvanceSummary,
    DeductionSchedule,
)
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.salary import (
    PaymentMethod,
    SalaryInputs,
    SalaryRecord,
    SalaryStatus,
    SalarySummary,
)
from payroll_kernel.exceptions import (
    AdvanceNotFoundError,
    DuplicateSalaryRecordError,
    OptimisticLockError,
    OutstandingAdvanceExistsError,
    SalaryRecordNotFoundError,
    ValidationError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.salary.config import SalaryConfig
from payroll_modules.salary.orm import AdvanceSalaryModel, SalaryRecordModel

logger = get_logger("modules.salary.service")

MAX_PAGE_SIZE = 200


# =========================================================================
# Per-employee serialization
# =========================================================================

# One lock per employee id ever seen; never pruned, so bounded by the
# number of employees.
_employee_locks: dict[str, threading.Lock] = {}
_employee_locks_guard = threading.Lock()


def _lock_for(employee_id: str) -> threading.Lock:
    with _employee_locks_guard:
        lock = _employee_locks.get(employee_id)
        if lock is None:
            lock = threading.Lock()
            _employee_locks[employee_id] = lock
        return lock


@contextmanager
def employee_lock(employee_id: str) -> Iterator[None]:
    """Serialize settlement and advance requests for one employee in-process."""
    lock = _lock_for(employee_id)
    with lock:
        yield


class SalaryService:
    """
    Orchestrates salary records and advances through engines and the ORM.

    Contract
    --------
    * Mutating methods return the persisted domain object (``SalaryRecord``
      or ``AdvanceSalary``) reloaded after the write.
    * Query methods return domain objects and never write.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing.
    * Session is committed only when the whole operation succeeded.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: SalaryConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or SalaryConfig.with_defaults()

    # =========================================================================
    # Loading helpers
    # =========================================================================

    def _advance_row(self, advance_id: UUID, for_update: bool = False) -> AdvanceSalaryModel:
        stmt = select(AdvanceSalaryModel).where(AdvanceSalaryModel.id == advance_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self._session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise AdvanceNotFoundError(str(advance_id))
        return row

    def _load_advance(self, advance_id: UUID) -> AdvanceSalary:
        return self._advance_row(advance_id).to_dto()

    def _salary_row(self, salary_record_id: UUID, for_update: bool = False) -> SalaryRecordModel:
        stmt = select(SalaryRecordModel).where(SalaryRecordModel.id == salary_record_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self._session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise SalaryRecordNotFoundError(str(salary_record_id))
        return row

    def _load_salary_record(self, salary_record_id: UUID) -> SalaryRecord:
        return self._salary_row(salary_record_id).to_dto()

    def _employee_advances(self, employee_id: str, for_update: bool = False) -> list[AdvanceSalaryModel]:
        stmt = select(AdvanceSalaryModel).where(AdvanceSalaryModel.employee_id == employee_id)
        if for_update:
            stmt = stmt.with_for_update()
        return list(self._session.execute(stmt).scalars())

    def _payment_method(self, method: PaymentMethod | str | None) -> PaymentMethod:
        value = method.value if isinstance(method, PaymentMethod) else method
        value = value or self._config.default_payment_method
        if value not in self._config.allowed_payment_methods:
            raise ValidationError(
                "payment_method",
                f"must be one of {sorted(self._config.allowed_payment_methods)}",
                value,
            )
        return PaymentMethod(value)

    # =========================================================================
    # Compare-and-swap writes
    # =========================================================================

    def _swap_advance(self, before: AdvanceSalary, after: AdvanceSalary, actor_id: UUID) -> AdvanceSalary:
        values = AdvanceSalaryModel.column_values(after)
        result = self._session.execute(
            update(AdvanceSalaryModel)
            .where(
                AdvanceSalaryModel.id == before.id,
                AdvanceSalaryModel.status == before.status.value,
                AdvanceSalaryModel.version == before.version,
            )
            .values(**values, version=before.version + 1, updated_by_id=actor_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise OptimisticLockError("advance_salary", str(before.id))
        row = self._advance_row(before.id)
        self._session.refresh(row)
        return row.to_dto()

    def _swap_salary_record(self, before: SalaryRecord, after: SalaryRecord, actor_id: UUID) -> SalaryRecord:
        values = SalaryRecordModel.column_values(after)
        result = self._session.execute(
            update(SalaryRecordModel)
            .where(
                SalaryRecordModel.id == before.id,
                SalaryRecordModel.status == before.status.value,
                SalaryRecordModel.version == before.version,
            )
            .values(**values, version=before.version + 1, updated_by_id=actor_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise OptimisticLockError("salary_record", str(before.id))
        row = self._salary_row(before.id)
        self._session.refresh(row)
        return row.to_dto()

    # =========================================================================
    # Salary records
    # =========================================================================

    def _create_salary_record(self, inputs: SalaryInputs, actor_id: UUID) -> SalaryRecordModel:
        record = salary_record.compute_salary_record(
            inputs,
            min_year=self._config.min_year,
            max_working_days=self._config.max_working_days,
        )
        if self._config.auto_pro_rate and record.working_days > 0:
            record = salary_record.apply_pro_rating(record)

        existing = self._session.execute(
            select(SalaryRecordModel.id).where(
                SalaryRecordModel.employee_id == record.employee_id,
                SalaryRecordModel.month == record.month,
                SalaryRecordModel.year == record.year,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateSalaryRecordError(record.employee_id, record.month, record.year)

        row = SalaryRecordModel.from_dto(record, created_by_id=actor_id)
        self._session.add(row)
        self._session.flush()
        return row

    def create_salary_record(self, inputs: SalaryInputs, actor_id: UUID) -> SalaryRecord:
        """Compute and persist a draft salary record.

        Raises:
            ValidationError: invalid inputs.
            DuplicateSalaryRecordError: a record already exists for the
                employee and month.
        """
        with LogContext.bind(actor_id=str(actor_id), employee_id=inputs.employee_id):
            try:
                row = self._create_salary_record(inputs, actor_id)
                self._session.commit()
                record = row.to_dto()
                logger.info("salary_record_created", extra={
                    "salary_record_id": str(record.id),
                    "month_key": record.month_key,
                    "total_salary": record.total_salary,
                    "net_salary": record.net_salary,
                })
                return record
            except IntegrityError as exc:
                self._session.rollback()
                raise DuplicateSalaryRecordError(
                    str(inputs.employee_id), str(inputs.month), inputs.year
                ) from exc
            except Exception:
                self._session.rollback()
                raise

    def process_monthly_salary(self, inputs: SalaryInputs, actor_id: UUID) -> SalaryRecord:
        """Create a draft record and settle the employee's due advances
        against it, in one transaction."""
        employee_id = str(inputs.employee_id)
        with LogContext.bind(actor_id=str(actor_id), employee_id=employee_id), employee_lock(employee_id):
            try:
                row = self._create_salary_record(inputs, actor_id)
                result = self._settle_locked(row, actor_id)
                self._session.commit()
                logger.info("monthly_salary_processed", extra={
                    "salary_record_id": str(row.id),
                    "advance_count": len(result.advances),
                    "total_deducted": result.total_deducted,
                    "net_salary": result.salary_record.net_salary,
                })
                return result.salary_record
            except IntegrityError as exc:
                self._session.rollback()
                raise DuplicateSalaryRecordError(employee_id, str(inputs.month), inputs.year) from exc
            except Exception:
                self._session.rollback()
                raise

    def update_salary_record(self, salary_record_id: UUID, actor_id: UUID, **changes: Any) -> SalaryRecord:
        """Edit inputs of a draft record; totals are re-derived."""
        with LogContext.bind(actor_id=str(actor_id), salary_record_id=str(salary_record_id)):
            try:
                before = self._load_salary_record(salary_record_id)
                after = salary_record.update_salary_inputs(
                    before, max_working_days=self._config.max_working_days, **changes
                )
                record = self._swap_salary_record(before, after, actor_id)
                self._session.commit()
                logger.info("salary_record_updated", extra={
                    "fields": sorted(changes),
                    "net_salary": record.net_salary,
                })
                return record
            except Exception:
                self._session.rollback()
                raise

    def approve_salary_record(
        self,
        salary_record_id: UUID,
        actor_id: UUID,
        approver_name: str | None = None,
    ) -> SalaryRecord:
        """draft -> approved."""
        with LogContext.bind(actor_id=str(actor_id), salary_record_id=str(salary_record_id)):
            try:
                before = self._load_salary_record(salary_record_id)
                after = salary_record.approve_salary_record(
                    before, str(actor_id), self._clock.now(), approver_name
                )
                record = self._swap_salary_record(before, after, actor_id)
                self._session.commit()
                logger.info("salary_record_approved", extra={"net_salary": record.net_salary})
                return record
            except Exception:
                self._session.rollback()
                raise

    def mark_salary_paid(
        self,
        salary_record_id: UUID,
        actor_id: UUID,
        payment_method: PaymentMethod | str | None = None,
        payment_reference: str | None = None,
    ) -> SalaryRecord:
        """approved -> paid."""
        with LogContext.bind(actor_id=str(actor_id), salary_record_id=str(salary_record_id)):
            try:
                method = self._payment_method(payment_method)
                before = self._load_salary_record(salary_record_id)
                after = salary_record.mark_salary_paid(
                    before, self._clock.now(), method, payment_reference
                )
                record = self._swap_salary_record(before, after, actor_id)
                self._session.commit()
                logger.info("salary_record_paid", extra={
                    "payment_method": method.value,
                    "net_salary": record.net_salary,
                })
                return record
            except Exception:
                self._session.rollback()
                raise

    def cancel_salary_record(
        self,
        salary_record_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
    ) -> SalaryRecord:
        """draft or approved -> cancelled.

        Advance lines already settled on the record stay in place; the
        advances are not credited back.
        """
        with LogContext.bind(actor_id=str(actor_id), salary_record_id=str(salary_record_id)):
            try:
                before = self._load_salary_record(salary_record_id)
                after = salary_record.cancel_salary_record(before, notes)
                record = self._swap_salary_record(before, after, actor_id)
                self._session.commit()
                logger.info("salary_record_cancelled")
                return record
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Settlement
    # =========================================================================

    def _settle_locked(self, row: SalaryRecordModel, actor_id: UUID) -> SettlementResult:
        # Caller holds the employee lock and owns the transaction.
        advance_rows = {
            a.id: a for a in self._session.execute(
                select(AdvanceSalaryModel)
                .where(
                    AdvanceSalaryModel.employee_id == row.employee_id,
                    AdvanceSalaryModel.status == AdvanceStatus.PAID.value,
                    AdvanceSalaryModel.remaining_amount > 0,
                )
                .with_for_update()
            ).scalars()
        }
        result = settlement.settle_advances_for_period(
            row.to_dto(),
            [a.to_dto() for a in advance_rows.values()],
            description_template=self._config.deduction_description_template,
        )
        if not result.deductions:
            return SettlementResult(salary_record=row.to_dto(), advances=(), deductions=())

        row.apply_dto(result.salary_record, actor_id)
        row.version += 1
        row.updated_by_id = actor_id
        updated: list[AdvanceSalaryModel] = []
        for advance in result.advances:
            advance_row = advance_rows[advance.id]
            advance_row.apply_dto(advance)
            advance_row.version += 1
            advance_row.updated_by_id = actor_id
            updated.append(advance_row)
        self._session.flush()

        for line in result.deductions:
            logger.info("advance_deduction_applied", extra={
                "salary_record_id": str(row.id),
                "advance_id": str(line.advance_id),
                "amount": line.amount,
            })
        return SettlementResult(
            salary_record=row.to_dto(),
            advances=tuple(a.to_dto() for a in updated),
            deductions=result.deductions,
        )

    def settle_salary_record(self, salary_record_id: UUID, actor_id: UUID) -> SettlementResult:
        """Apply every due advance deduction to a draft salary record.

        The salary record, its new deduction lines and every affected
        advance are committed together or not at all.

        Raises:
            SalaryRecordNotFoundError: unknown record.
            InvalidStateTransitionError: the record is not a draft.
            SettlementFailedError: a deduction failed; nothing was written.
        """
        with LogContext.bind(actor_id=str(actor_id), salary_record_id=str(salary_record_id)):
            try:
                employee_id = self._salary_row(salary_record_id).employee_id
                with LogContext.bind(employee_id=employee_id), employee_lock(employee_id):
                    row = self._salary_row(salary_record_id, for_update=True)
                    result = self._settle_locked(row, actor_id)
                    self._session.commit()
                logger.info("settlement_committed", extra={
                    "advance_count": len(result.advances),
                    "total_deducted": result.total_deducted,
                    "net_salary": result.salary_record.net_salary,
                })
                return result
            except Exception:
                self._session.rollback()
                logger.warning("settlement_rolled_back", exc_info=True)
                raise

    # =========================================================================
    # Advances
    # =========================================================================

    def request_advance(
        self,
        employee_id: str,
        amount: Decimal | int | str,
        reason: str,
        actor_id: UUID,
        schedule: DeductionSchedule | str = DeductionSchedule.SINGLE_MONTH,
        custom_monthly: Decimal | int | str | None = None,
        employee_name: str = "",
        notes: str | None = None,
    ) -> AdvanceSalary:
        """Create a pending advance.

        Raises:
            OutstandingAdvanceExistsError: the employee already has a pending
                or approved advance.
            ValidationError: bad amount, reason or schedule.
        """
        with LogContext.bind(actor_id=str(actor_id), employee_id=employee_id), employee_lock(employee_id):
            try:
                existing = [a.to_dto() for a in self._employee_advances(employee_id, for_update=True)]
                advance = advance_lifecycle.request_advance(
                    employee_id,
                    amount,
                    reason,
                    schedule=schedule,
                    custom_monthly=custom_monthly,
                    existing_advances=existing,
                    requested_at=self._clock.now(),
                    employee_name=employee_name,
                    notes=notes,
                    max_amount=self._config.max_advance_amount,
                )
                row = AdvanceSalaryModel.from_dto(advance, created_by_id=actor_id)
                self._session.add(row)
                self._session.flush()
                self._session.commit()
                logger.info("advance_requested", extra={
                    "advance_id": str(advance.id),
                    "amount": advance.amount,
                    "deduction_schedule": advance.deduction_schedule.value,
                    "monthly_deduction": advance.monthly_deduction,
                })
                return row.to_dto()
            except IntegrityError as exc:
                self._session.rollback()
                raise OutstandingAdvanceExistsError(employee_id) from exc
            except Exception:
                self._session.rollback()
                raise

    def update_advance(
        self,
        advance_id: UUID,
        actor_id: UUID,
        amount: Decimal | int | str | None = None,
        reason: str | None = None,
        schedule: DeductionSchedule | str | None = None,
        custom_monthly: Decimal | int | str | None = None,
        notes: str | None = None,
    ) -> AdvanceSalary:
        """Edit a pending advance."""
        with LogContext.bind(actor_id=str(actor_id), advance_id=str(advance_id)):
            try:
                before = self._load_advance(advance_id)
                after = advance_lifecycle.update_advance(
                    before,
                    amount=amount,
                    reason=reason,
                    schedule=schedule,
                    custom_monthly=custom_monthly,
                    notes=notes,
                    max_amount=self._config.max_advance_amount,
                )
                advance = self._swap_advance(before, after, actor_id)
                self._session.commit()
                logger.info("advance_updated", extra={
                    "amount": advance.amount,
                    "monthly_deduction": advance.monthly_deduction,
                })
                return advance
            except Exception:
                self._session.rollback()
                raise

    def approve_advance(
        self,
        advance_id: UUID,
        actor_id: UUID,
        approver_name: str | None = None,
        notes: str | None = None,
    ) -> AdvanceSalary:
        """pending -> approved."""
        with LogContext.bind(actor_id=str(actor_id), advance_id=str(advance_id)):
            try:
                before = self._load_advance(advance_id)
                after = advance_lifecycle.approve_advance(
                    before, str(actor_id), self._clock.now(), approver_name, notes
                )
                advance = self._swap_advance(before, after, actor_id)
                self._session.commit()
                logger.info("advance_approved", extra={"amount": advance.amount})
                return advance
            except Exception:
                self._session.rollback()
                raise

    def reject_advance(
        self,
        advance_id: UUID,
        actor_id: UUID,
        rejection_reason: str,
        approver_name: str | None = None,
    ) -> AdvanceSalary:
        """pending or approved -> rejected."""
        with LogContext.bind(actor_id=str(actor_id), advance_id=str(advance_id)):
            try:
                before = self._load_advance(advance_id)
                after = advance_lifecycle.reject_advance(
                    before, str(actor_id), rejection_reason, self._clock.now(), approver_name
                )
                advance = self._swap_advance(before, after, actor_id)
                self._session.commit()
                logger.info("advance_rejected", extra={
                    "rejection_reason": advance.rejection_reason,
                })
                return advance
            except Exception:
                self._session.rollback()
                raise

    def mark_advance_paid(
        self,
        advance_id: UUID,
        actor_id: UUID,
        deduction_start_month: str,
        payment_method: PaymentMethod | str | None = None,
        notes: str | None = None,
    ) -> AdvanceSalary:
        """approved -> paid.

        The write only succeeds if the row is still approved at the version
        that was read; a concurrent payment raises ``OptimisticLockError``.
        """
        with LogContext.bind(actor_id=str(actor_id), advance_id=str(advance_id)):
            try:
                method = self._payment_method(payment_method)
                before = self._load_advance(advance_id)
                after = advance_lifecycle.mark_advance_paid(
                    before, method, deduction_start_month, self._clock.now(), notes
                )
                advance = self._swap_advance(before, after, actor_id)
                self._session.commit()
                logger.info("advance_paid", extra={
                    "amount": advance.amount,
                    "payment_method": method.value,
                    "deduction_start_month": advance.deduction_start_month,
                    "deduction_end_month": advance.deduction_end_month,
                })
                return advance
            except Exception:
                self._session.rollback()
                raise

    def delete_advance(self, advance_id: UUID, actor_id: UUID) -> None:
        """Delete a pending or rejected advance."""
        with LogContext.bind(actor_id=str(actor_id), advance_id=str(advance_id)):
            try:
                advance = self._load_advance(advance_id)
                advance_lifecycle.check_deletable(advance)
                result = self._session.execute(
                    delete(AdvanceSalaryModel)
                    .where(
                        AdvanceSalaryModel.id == advance.id,
                        AdvanceSalaryModel.status == advance.status.value,
                        AdvanceSalaryModel.version == advance.version,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise OptimisticLockError("advance_salary", str(advance.id))
                self._session.commit()
                logger.info("advance_deleted", extra={"status": advance.status.value})
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Queries
    # =========================================================================

    def get_salary_record(self, salary_record_id: UUID) -> SalaryRecord:
        return self._load_salary_record(salary_record_id)

    def find_salary_record(self, employee_id: str, month: str | int, year: int) -> SalaryRecord | None:
        """Salary record for (employee, month, year), or None."""
        row = self._session.execute(
            select(SalaryRecordModel).where(
                SalaryRecordModel.employee_id == employee_id,
                SalaryRecordModel.month == normalize_month(month),
                SalaryRecordModel.year == year,
            )
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def list_salary_records(
        self,
        employee_id: str | None = None,
        status: SalaryStatus | str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[SalaryRecord]:
        """Salary records, most recent period first."""
        _check_page(limit, offset)
        stmt = select(SalaryRecordModel)
        if employee_id is not None:
            stmt = stmt.where(SalaryRecordModel.employee_id == employee_id)
        if status is not None:
            stmt = stmt.where(SalaryRecordModel.status == SalaryStatus(status).value)
        stmt = stmt.order_by(
            SalaryRecordModel.year.desc(),
            SalaryRecordModel.month.desc(),
            SalaryRecordModel.employee_id,
        ).limit(limit).offset(offset)
        return [row.to_dto() for row in self._session.execute(stmt).scalars()]

    def get_payslip_data(self, salary_record_id: UUID) -> dict[str, Any]:
        return salary_record.payslip_data(self._load_salary_record(salary_record_id))

    def get_salary_summary(self, start_month: str, end_month: str) -> SalarySummary:
        """Totals over paid salary records between two "YYYY-MM" keys."""
        start_year, _ = parse_month_key(start_month)
        end_year, _ = parse_month_key(end_month)
        rows = self._session.execute(
            select(SalaryRecordModel).where(
                SalaryRecordModel.status == SalaryStatus.PAID.value,
                SalaryRecordModel.year >= start_year,
                SalaryRecordModel.year <= end_year,
            )
        ).scalars()
        return salary_record.summarize_salaries(
            [row.to_dto() for row in rows], start_month, end_month
        )

    def get_advance(self, advance_id: UUID) -> AdvanceSalary:
        return self._load_advance(advance_id)

    def list_advances(
        self,
        employee_id: str | None = None,
        status: AdvanceStatus | str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[AdvanceSalary]:
        """Advances, newest request first."""
        _check_page(limit, offset)
        stmt = select(AdvanceSalaryModel)
        if employee_id is not None:
            stmt = stmt.where(AdvanceSalaryModel.employee_id == employee_id)
        if status is not None:
            stmt = stmt.where(AdvanceSalaryModel.status == AdvanceStatus(status).value)
        stmt = stmt.order_by(
            AdvanceSalaryModel.requested_at.desc(),
            AdvanceSalaryModel.id,
        ).limit(limit).offset(offset)
        return [row.to_dto() for row in self._session.execute(stmt).scalars()]

    def get_pending_advances(self, employee_id: str) -> list[AdvanceSalary]:
        """Paid advances still being recovered, in settlement order."""
        advances = [row.to_dto() for row in self._employee_advances(employee_id)]
        return settlement.get_pending_advances(employee_id, advances)

    def get_total_outstanding(self, employee_id: str) -> Decimal:
        advances = [row.to_dto() for row in self._employee_advances(employee_id)]
        return settlement.get_total_outstanding(employee_id, advances)

    def get_advance_summary(self, employee_id: str) -> AdvanceSummary:
        advances = [row.to_dto() for row in self._employee_advances(employee_id)]
        return settlement.summarize_advances(
            employee_id, advances, history_limit=self._config.advance_history_limit
        )


def _check_page(limit: int, offset: int) -> None:
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError("limit", f"must be between 1 and {MAX_PAGE_SIZE}", limit)
    if offset < 0:
        raise ValidationError("offset", "must not be negative", offset)
