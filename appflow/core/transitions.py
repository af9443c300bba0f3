# appflow/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Union

from appflow.core.actions import ActionRef, _ActionAdapter
from appflow.core.events import Event
from appflow.core.guards import GuardRef, _GuardAdapter

if TYPE_CHECKING:
    from appflow.core.base import StateBase


class Transition:
    """
    Defines a possible path from one state to another, guarded by conditions and
    potentially performing actions. Used by the state machine to change states
    when events are processed.

    The source and resolved target are filled in by the StateGraph when the
    definition is indexed; a transition declared with ``target=None`` only runs
    its actions and leaves the active states untouched.
    """

    def __init__(
        self,
        target: Optional[str] = None,
        guards: Optional[List[GuardRef]] = None,
        actions: Optional[List[ActionRef]] = None,
        priority: int = 0,
    ) -> None:
        """
        :param target: Target reference: a sibling name, ``.child`` or ``#Absolute.Path``.
        :param guards: Guard conditions that must all be true for the transition.
        :param actions: Actions to execute when the transition occurs, in order.
        :param priority: Higher priority transitions declared on the same node are
            tried first; equal priorities keep declaration order.
        """
        self._target = target
        self._guards = list(guards) if guards else []
        self._actions = list(actions) if actions else []
        self._priority = priority
        self.source: Optional["StateBase"] = None
        self.target_state: Optional["StateBase"] = None

    def get_priority(self) -> int:
        """
        Return the priority level assigned to this transition.
        """
        return self._priority

    @property
    def target(self) -> Optional[str]:
        """The unresolved target reference."""
        return self._target

    @property
    def guards(self) -> List[GuardRef]:
        """The guard conditions for this transition."""
        return self._guards

    @property
    def actions(self) -> List[ActionRef]:
        """The actions to execute when this transition occurs."""
        return self._actions

    @property
    def is_targetless(self) -> bool:
        return self._target is None

    def __repr__(self) -> str:
        source = self.source.id if self.source is not None else "?"
        return f"Transition({source} -> {self._target})"


TransitionSpec = Union[str, Transition, Sequence[Union[str, Transition]], None]


def normalize_transitions(spec: TransitionSpec) -> List[Transition]:
    """
    Accept the shorthand forms used in state definitions (a target name, a
    Transition, or a list of either) and return Transition objects in declaration order.
    """
    if spec is None:
        return []
    if isinstance(spec, (str, Transition)):
        spec = [spec]
    result = []
    for item in spec:
        if isinstance(item, str):
            result.append(Transition(target=item))
        elif isinstance(item, Transition):
            result.append(item)
        else:
            raise TypeError(f"Unsupported transition spec: {item!r}")
    return result


class _TransitionPrioritySorter:
    """
    Internal utility to sort a list of transitions by their priority, ensuring
    that the highest priority valid transition is selected first.
    """

    def sort(self, transitions: Iterable[Transition]) -> List[Transition]:
        """
        Sort and return transitions ordered by priority, highest first. The sort is
        stable, so transitions of equal priority keep their declaration order.
        """
        return sorted(transitions, key=lambda t: t.get_priority(), reverse=True)


class _GuardEvaluator:
    """
    Internal helper to evaluate a list of resolved guards against the context and event.
    """

    def evaluate(self, guards: List[_GuardAdapter], context: Any, event: Event) -> bool:
        """
        Check all guards. Return True if all pass, False if any fail.
        """
        for g in guards:
            if not g.check(context, event):
                return False
        return True


class _ActionExecutor:
    """
    Internal helper to execute a list of resolved actions in order, threading the
    patched context from one action to the next.
    """

    async def execute(self, actions: List[_ActionAdapter], context: Any, event: Event) -> Any:
        """
        Run the given actions for the event and return the resulting context.

        :raises ActionError: If any action fails.
        """
        for a in actions:
            context = await a.run(context, event)
        return context
