# appflow/core/hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from appflow.core.base import StateBase

logger = logging.getLogger(__name__)


@runtime_checkable
class HookProtocol(Protocol):
    """
    Shape of a lifecycle hook. A hook may implement any subset of these methods,
    each either as a plain function or a coroutine function.
    """

    def on_enter(self, state: "StateBase") -> Any: ...

    def on_exit(self, state: "StateBase") -> Any: ...


class HookManager:
    """
    Manages the registration and execution of hooks that listen to state machine
    lifecycle events (on_enter, on_exit, on_transition, on_error). Users can attach
    logging, monitoring, or custom side effects without altering core logic.
    """

    def __init__(self, hooks: Optional[List[Any]] = None) -> None:
        """
        Initialize with an optional list of hook objects.
        """
        self._hooks: List[Any] = list(hooks or [])

    @property
    def hooks(self) -> List[Any]:
        return list(self._hooks)

    def register_hook(self, hook: Any) -> None:
        """
        Add a new hook to the manager's list of hooks.

        :param hook: An object implementing some of the HookProtocol methods.
        """
        self._hooks.append(hook)

    async def execute_on_enter(self, state: "StateBase") -> None:
        """
        Run all hooks' on_enter logic when entering a state.
        """
        await _HookInvoker(self._hooks).invoke("on_enter", state)

    async def execute_on_exit(self, state: "StateBase") -> None:
        """
        Run all hooks' on_exit logic when exiting a state.
        """
        await _HookInvoker(self._hooks).invoke("on_exit", state)

    async def execute_on_transition(self, source: "StateBase", target: Optional["StateBase"]) -> None:
        """
        Run all hooks' on_transition logic after a transition's actions ran.
        """
        await _HookInvoker(self._hooks).invoke("on_transition", source, target)

    async def execute_on_error(self, error: Exception) -> None:
        """
        Run all hooks' on_error logic when an exception occurs.
        """
        await _HookInvoker(self._hooks).invoke("on_error", error)


class _HookInvoker:
    """
    Internal helper that iterates through a list of hooks and invokes their
    lifecycle methods, awaiting the ones that are coroutines.
    """

    def __init__(self, hooks: List[Any]) -> None:
        self._hooks = hooks

    async def invoke(self, method_name: str, *args: Any) -> None:
        for hook in self._hooks:
            method = getattr(hook, method_name, None)
            if method is None:
                continue
            result = method(*args)
            if inspect.isawaitable(result):
                await result


class LoggingHook:
    """
    Hook that traces the machine's lifecycle through the standard logging module.
    """

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.DEBUG) -> None:
        self._log = log or logger
        self._level = level

    def on_enter(self, state: "StateBase") -> None:
        self._log.log(self._level, "enter %s", state.id)

    def on_exit(self, state: "StateBase") -> None:
        self._log.log(self._level, "exit %s", state.id)

    def on_transition(self, source: "StateBase", target: Optional["StateBase"]) -> None:
        self._log.log(self._level, "transition %s -> %s", source.id, target.id if target is not None else "(none)")

    def on_error(self, error: Exception) -> None:
        self._log.error("state machine error: %s", error)
