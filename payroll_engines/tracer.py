"""
payroll_engines.tracer -- Engine invocation tracer emitting PAYROLL_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    payroll engine invocations with structured trace logging.  The trace
    captures engine_name, engine_version, input_fingerprint (deterministic
    SHA-256 hash of selected arguments), duration_ms and outcome.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Does NOT introduce I/O into engines; emits a log record only.
    Uses its own logger namespace (``payroll_kernel.engines.tracer``) so the
    records flow through the kernel's structured handler.

Invariants enforced:
    - Fingerprint computation is deterministic: dict keys are sorted,
      Decimals are normalized, dataclasses are rendered field by field.
    - Engine purity: the decorator only reads arguments and emits a log
      record; it does not mutate inputs or swallow exceptions.

Failure modes:
    - If fingerprint_fields name parameters the call does not bind, the
      missing field is recorded as "null".
    - Exceptions raised by the engine are re-raised unchanged after an
      ``outcome="error"`` trace record is emitted.

Usage:
    from payroll_engines.tracer import traced_engine

    @traced_engine("salary_record", "1.0", fingerprint_fields=("inputs",))
    def compute_salary_record(inputs, config=None):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable
from decimal import Decimal
from enum import Enum
from typing import Any

_logger = logging.getLogger("payroll_kernel.engines.tracer")

TRACE_TYPE = "PAYROLL_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return str(value.normalize()) if value.is_finite() else str(value)
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (int, float, str)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = (
            f"{f.name}:{_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return "<" + ",".join(parts) + ">"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """Compute a 16-character SHA-256 prefix over the named arguments."""
    parts: list[str] = []
    for name in fingerprint_fields:
        parts.append(f"{name}={_canonicalize(arguments.get(name))}")
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits PAYROLL_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "settlement").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names (positional or keyword) to include
            in the input fingerprint hash.

    Returns:
        Decorator function.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                try:
                    bound = signature.bind_partial(*args, **kwargs)
                    arguments = dict(bound.arguments)
                except TypeError:
                    # The call itself will raise the same TypeError below.
                    arguments = dict(kwargs)
                fp = compute_input_fingerprint(fingerprint_fields, arguments)

            t0 = time.monotonic()
            outcome = "ok"
            try:
                return func(*args, **kwargs)
            except Exception:
                outcome = "error"
                raise
            finally:
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                _logger.info(
                    TRACE_TYPE,
                    extra={
                        "trace_type": TRACE_TYPE,
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fp,
                        "duration_ms": duration_ms,
                        "function": func.__qualname__,
                        "outcome": outcome,
                    },
                )

        return wrapper

    return decorator
