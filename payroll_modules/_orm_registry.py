"""
Module ORM Registry (``payroll_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.  ``payroll_kernel.db.engine.create_tables()`` calls
``import_all_orm_models()`` before running DDL.

Architecture position
---------------------
**Modules layer** -- utility.  Imports sibling ``payroll_modules`` ORM
modules.  Reached from the kernel only through the deferred import inside
``create_tables()``.
"""


def import_all_orm_models() -> None:
    """Import every ``payroll_modules.*.orm`` module to register ORM models.

    This function is idempotent -- repeated calls are harmless.
    """
    import payroll_modules.salary.orm  # noqa: F401

