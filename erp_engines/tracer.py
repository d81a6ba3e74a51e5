"""
erp_engines.tracer -- Engine invocation tracer emitting ERP_ENGINE_TRACE.

Responsibility:
    ``@traced_engine`` wraps a pure engine function and emits one DEBUG
    record per call: engine name and version, a fingerprint of selected
    arguments, the document the call acted on, duration and, when the call
    raised, the error code.

Architecture position:
    Engines -- support for the pure calculation layer.  Emits a log record
    and nothing else; inputs and results pass through untouched.

Usage:
    from erp_engines.tracer import traced_engine

    @traced_engine("approval", "1.0", fingerprint_fields=("acting_role",))
    def approve(document, acting_role, acting_user_id, policy=None):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from erp_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    """Stable text form of ``value`` for fingerprinting.

    Mappings are key-sorted, sequences keep their order, enums contribute
    their value.  Anything else falls back to ``str(value)``.
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """16-hex-character SHA-256 prefix over the named arguments.

    A field absent from ``arguments`` counts as ``null``.
    """
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _bound_arguments(signature: inspect.Signature, args: tuple, kwargs: dict) -> dict[str, Any]:
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError:
        # Let the call itself raise the argument error.
        return dict(kwargs)
    return dict(bound.arguments)


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits ERP_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "approval").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names, positional or keyword, hashed
            into ``input_fingerprint``.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)
        first_param = next(iter(signature.parameters), None)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            arguments = _bound_arguments(signature, args, kwargs)
            subject = arguments.get(first_param)

            error_code = None
            started = time.monotonic()
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                error_code = getattr(exc, "code", type(exc).__name__)
                raise
            finally:
                _logger.debug(
                    "ERP_ENGINE_TRACE",
                    extra={
                        "trace_type": "ERP_ENGINE_TRACE",
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "function": func.__qualname__,
                        "subject_id": getattr(subject, "id", None),
                        "input_fingerprint": (
                            compute_input_fingerprint(fingerprint_fields, arguments)
                            if fingerprint_fields else ""
                        ),
                        "duration_ms": round((time.monotonic() - started) * 1000, 2),
                        "error_code": error_code,
                    },
                )

        return wrapper

    return decorator
