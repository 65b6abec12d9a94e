"""Log context carried across the awaits of one task.

Bound values live in a ``ContextVar`` holding a read-only mapping. Each asyncio
task starts from a copy of its parent's context, so a value bound while
processing one bulk item never shows up in the log lines of another.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_EMPTY: Mapping[str, str] = MappingProxyType({})
_BOUND: ContextVar[Mapping[str, str]] = ContextVar("catalog_log_context", default=_EMPTY)


def _merged(base: Mapping[str, str], values: Mapping[str, object]) -> Mapping[str, str]:
    merged = dict(base)
    merged.update(
        (str(key), str(value)) for key, value in values.items() if value is not None
    )
    return MappingProxyType(merged)


def get_context() -> dict[str, str]:
    """Return a copy of the context bound in the current task."""
    return dict(_BOUND.get())


def bind_context(**values: object) -> None:
    """Bind stringified values for the rest of the current task; ``None`` is skipped."""
    _BOUND.set(_merged(_BOUND.get(), values))


def clear_context(*keys: str) -> None:
    """Drop ``keys``, or everything when no key is given."""
    if not keys:
        _BOUND.set(_EMPTY)
        return
    _BOUND.set(
        MappingProxyType(
            {key: value for key, value in _BOUND.get().items() if key not in keys}
        )
    )


@contextmanager
def log_context(
    values: Mapping[str, object] | None = None, /, **extra: object
) -> Iterator[None]:
    """Bind ``values`` and ``extra`` until the block exits."""
    token = _BOUND.set(_merged(_merged(_BOUND.get(), values or {}), extra))
    try:
        yield
    finally:
        _BOUND.reset(token)
