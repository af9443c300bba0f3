# appflow/core/states.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from appflow.core.actions import ActionRef
from appflow.core.base import StateBase
from appflow.core.errors import ValidationError
from appflow.core.events import Event
from appflow.core.transitions import Transition, TransitionSpec, normalize_transitions

ServiceFn = Callable[[Any, Event], Awaitable[Any]]
ServiceRef = Union[str, ServiceFn]
TransitionTable = Mapping[str, TransitionSpec]


class Invoke:
    """
    Declares the asynchronous service a state runs while it is active. The
    service starts on entry; its result is delivered back to the machine as a
    done/error event handled by ``on_done``/``on_error``.
    """

    def __init__(
        self,
        src: ServiceRef,
        on_done: TransitionSpec = None,
        on_error: TransitionSpec = None,
        id: Optional[str] = None,
    ) -> None:
        """
        :param src: The service callable, or its name in the machine's options.
        :param on_done: Transitions taken when the service resolves.
        :param on_error: Transitions taken when the service raises.
        :param id: Invocation id; defaults to the owning state's dotted id.
        """
        self.src = src
        self.on_done = normalize_transitions(on_done)
        self.on_error = normalize_transitions(on_error)
        self.id = id


class State(StateBase):
    """
    An atomic state. It may own an invocation and declare transitions for
    events; it has no children.
    """

    def __init__(
        self,
        name: str,
        on: Optional[TransitionTable] = None,
        entry_actions: Optional[List[ActionRef]] = None,
        exit_actions: Optional[List[ActionRef]] = None,
        invoke: Optional[Invoke] = None,
        always: TransitionSpec = None,
        on_done: TransitionSpec = None,
    ) -> None:
        """
        Initialize a state with its name and optional behavior.

        :param name: Name identifying this state within its parent scope.
        :param on: Mapping of event name to transition spec.
        :param entry_actions: Actions executed upon entering this state.
        :param exit_actions: Actions executed upon exiting this state.
        :param invoke: Service started on entry and abandoned on exit.
        :param always: Eventless transitions checked after every microstep.
        :param on_done: Transitions taken when this state completes.
        """
        super().__init__(name=name, entry_actions=list(entry_actions or []), exit_actions=list(exit_actions or []))
        for event_name, spec in (on or {}).items():
            self.add_transitions(event_name, normalize_transitions(spec))
        self._always.extend(normalize_transitions(always))
        self.invoke = invoke
        self.on_done = normalize_transitions(on_done)


class FinalState(State):
    """
    An atomic state whose entry signals completion of its parent compound state.
    """

    def __init__(
        self,
        name: str,
        entry_actions: Optional[List[ActionRef]] = None,
        exit_actions: Optional[List[ActionRef]] = None,
    ) -> None:
        super().__init__(name, entry_actions=entry_actions, exit_actions=exit_actions)

    @property
    def is_final(self) -> bool:
        return True


class CompositeState(StateBase):
    """
    A compound state holding its child states by value, with its own initial
    child and optional final children.
    """

    def __init__(
        self,
        name: str,
        children: Sequence[StateBase],
        initial: Optional[str] = None,
        on: Optional[TransitionTable] = None,
        entry_actions: Optional[List[ActionRef]] = None,
        exit_actions: Optional[List[ActionRef]] = None,
        always: TransitionSpec = None,
        on_done: TransitionSpec = None,
    ) -> None:
        """
        Initialize a composite state.

        :param name: Name identifying this state.
        :param children: Child states, in declaration order.
        :param initial: Name of the initial child; defaults to the first child.
        :param on: Mapping of event name to transition spec, active whatever the substate.
        :param entry_actions: Actions executed upon entering this state.
        :param exit_actions: Actions executed upon exiting this state.
        :param always: Eventless transitions.
        :param on_done: Transitions taken when the active child reaches a final state.
        """
        super().__init__(name=name, entry_actions=list(entry_actions or []), exit_actions=list(exit_actions or []))
        self._children: Dict[str, StateBase] = {}
        for child in children:
            if child.name in self._children:
                raise ValidationError(f"Composite state '{name}' has duplicate child '{child.name}'")
            self._children[child.name] = child
        self._initial_name = initial if initial is not None else next(iter(self._children), None)
        for event_name, spec in (on or {}).items():
            self.add_transitions(event_name, normalize_transitions(spec))
        self._always.extend(normalize_transitions(always))
        self.invoke: Optional[Invoke] = None
        self.on_done = normalize_transitions(on_done)

    @property
    def is_atomic(self) -> bool:
        return False

    @property
    def children(self) -> Dict[str, StateBase]:
        return dict(self._children)

    @property
    def initial_name(self) -> Optional[str]:
        return self._initial_name

    @property
    def initial_state(self) -> Optional[StateBase]:
        """The child entered when this state is entered without an explicit deeper target."""
        if self._initial_name is None:
            return None
        return self._children.get(self._initial_name)
