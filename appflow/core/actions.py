# appflow/core/actions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import dataclasses
import inspect
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from appflow.core.errors import ActionError
from appflow.core.events import Event

Patch = Optional[Mapping[str, Any]]
ActionFn = Callable[[Any, Event], Union[Patch, Awaitable[Patch]]]
ActionRef = Union[str, ActionFn]


def assign(**assigners: Any) -> ActionFn:
    """
    Build an action that returns a context patch. Each keyword is a context field;
    its value is either a constant or a callable taking (context, event).

        assign(user_id=lambda ctx, ev: ev.data.user_id)
    """

    def _assign(context: Any, event: Event) -> Patch:
        return {key: value(context, event) if callable(value) else value for key, value in assigners.items()}

    _assign.__name__ = f"assign({', '.join(assigners)})"
    return _assign


def apply_patch(context: Any, patch: Patch) -> Any:
    """
    Return a new context with the patch applied. The original context is never mutated.
    """
    if not patch:
        return context
    if dataclasses.is_dataclass(context) and not isinstance(context, type):
        return dataclasses.replace(context, **patch)
    if isinstance(context, Mapping):
        merged = dict(context)
        merged.update(patch)
        return merged
    raise TypeError(f"Context of type {type(context).__name__} cannot be patched")


def read_only(context: Any) -> Any:
    """
    View of the context handed to guards, actions and services. Frozen dataclasses are
    already immutable; mappings are exposed through a read-only proxy.
    """
    if isinstance(context, dict):
        return MappingProxyType(context)
    return context


class _ActionAdapter:
    """
    Internal adapter that wraps a resolved action callable so sync and async actions
    run the same way, and failures surface as ActionError.
    """

    def __init__(self, name: str, action_fn: ActionFn) -> None:
        """
        Wrap an action function for consistent execution.

        :param name: Name used in error messages.
        :param action_fn: Function taking (context, event) and returning an optional patch.
        """
        self._name = name
        self._action_fn = action_fn

    @property
    def name(self) -> str:
        return self._name

    async def run(self, context: Any, event: Event) -> Any:
        """
        Execute the action and return the patched context.

        :param context: The context as it stands before this action.
        :param event: The triggering event.
        """
        try:
            patch = self._action_fn(read_only(context), event)
            if inspect.isawaitable(patch):
                patch = await patch
            if patch is not None and not isinstance(patch, Mapping):
                raise TypeError(f"actions must return a mapping patch or None, got {type(patch).__name__}")
            return apply_patch(context, patch)
        except ActionError:
            raise
        except Exception as e:
            raise ActionError(self._name, e) from e
