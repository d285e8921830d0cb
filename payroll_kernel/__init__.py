"""
Payroll Kernel

Shared foundation for the payroll settlement engine:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Injectable clock
- Immutable salary-record and advance-salary value objects
- SQLAlchemy base classes and session utilities
"""

__version__ = "0.1.0"
