# appflow/core/guards.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Callable, Union

from appflow.core.errors import GuardError
from appflow.core.events import Event

GuardFn = Callable[[Any, Event], bool]
GuardRef = Union[str, GuardFn]


def callable_name(fn: Any) -> str:
    """Best-effort readable name for a guard, action or service reference."""
    if isinstance(fn, str):
        return fn
    return getattr(fn, "__name__", None) or repr(fn)


class _GuardAdapter:
    """
    Internal class adapting a resolved guard callable so that every evaluation
    returns a plain bool and every failure surfaces as a GuardError.
    """

    def __init__(self, name: str, guard_fn: GuardFn) -> None:
        """
        Wrap a guard function.

        :param name: Name used in error messages.
        :param guard_fn: Predicate taking (context, event).
        """
        self._name = name
        self._guard_fn = guard_fn

    @property
    def name(self) -> str:
        return self._name

    def check(self, context: Any, event: Event) -> bool:
        """
        Evaluate the wrapped guard function with the given context and event.
        """
        try:
            return bool(self._guard_fn(context, event))
        except Exception as e:
            raise GuardError(self._name, e) from e
