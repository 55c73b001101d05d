"""Runs a single registered callback against a record."""

from typing import Any

from after_attached.callbacks.types import CallbackSpec, Closure, NamedMethod


def invoke_callback(spec: CallbackSpec, record: Any, attachment: Any) -> Any:
    """Execute one callback for ``record`` with ``attachment`` as its argument.

    NamedMethod callbacks are looked up on the record at call time.
    Closure callbacks receive the record as their first argument.
    Exceptions raised by the callback propagate unchanged.
    """
    if isinstance(spec, NamedMethod):
        return getattr(record, spec.name)(attachment)
    if isinstance(spec, Closure):
        return spec.fn(record, attachment)
    raise TypeError(f"Unsupported callback spec: {spec!r}")
