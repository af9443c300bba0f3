# appflow/core/events.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

INIT_EVENT_NAME = "appflow.init"


def done_state(state_id: str) -> str:
    """Name of the internal event raised when a compound state completes."""
    return f"done.state.{state_id}"


def done_invoke(invoke_id: str) -> str:
    """Name of the internal event raised when an invocation resolves."""
    return f"done.invoke.{invoke_id}"


def error_invoke(invoke_id: str) -> str:
    """Name of the internal event raised when an invocation fails."""
    return f"error.platform.{invoke_id}"


@dataclass(frozen=True)
class Event:
    """
    Represents a signal or trigger within the state machine. Events cause the
    machine to evaluate transitions and possibly change states.

    Events are frozen: neither the engine nor actions can mutate them once sent.
    Subclasses add the payload fields their handlers need.
    """

    name: str

    @property
    def is_internal(self) -> bool:
        """True for events the engine raises itself (init, completion, invocation results)."""
        return False


@dataclass(frozen=True)
class InitEvent(Event):
    """The event passed to entry actions and services while the machine starts."""

    name: str = field(default=INIT_EVENT_NAME, init=False)

    @property
    def is_internal(self) -> bool:
        return True


@dataclass(frozen=True)
class DoneStateEvent(Event):
    """
    Raised when the active child of a compound state reaches one of its final children.
    """

    state_id: str = ""

    @property
    def is_internal(self) -> bool:
        return True


@dataclass(frozen=True)
class DoneInvokeEvent(Event):
    """
    Carries the resolved value of an invocation into the owning state's on_done transitions.
    """

    invocation_id: str = ""
    data: Any = None

    @property
    def is_internal(self) -> bool:
        return True


@dataclass(frozen=True)
class ErrorInvokeEvent(Event):
    """
    Carries the failure of an invocation into the owning state's on_error transitions.
    """

    invocation_id: str = ""
    error: Any = None

    @property
    def is_internal(self) -> bool:
        return True


def to_event(event: Union[Event, str]) -> Event:
    """Accept either an Event instance or a bare event name."""
    if isinstance(event, Event):
        return event
    if isinstance(event, str) and event:
        return Event(event)
    raise TypeError(f"Cannot convert {event!r} to an Event")


_INTERNAL_PREFIXES = ("done.state.", "done.invoke.", "error.platform.", INIT_EVENT_NAME)


def is_internal_name(name: str) -> bool:
    """True for event names the engine reserves for its own events."""
    return name.startswith(_INTERNAL_PREFIXES)
