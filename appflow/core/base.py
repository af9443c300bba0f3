# appflow/core/base.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from appflow.core.actions import ActionRef
from appflow.core.transitions import Transition, _TransitionPrioritySorter


@dataclass(eq=False)
class StateBase:
    """Base class for state functionality: identity, hierarchy links and the node's own transition table."""

    name: str
    parent: Optional["StateBase"] = None
    entry_actions: List[ActionRef] = field(default_factory=list)
    exit_actions: List[ActionRef] = field(default_factory=list)
    id: str = field(default="", init=False)
    _transitions: Dict[str, List[Transition]] = field(default_factory=dict, init=False, repr=False)
    _always: List[Transition] = field(default_factory=list, init=False, repr=False)
    _bound: bool = field(default=False, init=False, repr=False)

    invoke = None
    on_done = ()

    def __hash__(self) -> int:
        """Make states hashable based on their name and memory address."""
        return hash((self.name, id(self)))

    def __eq__(self, other: object) -> bool:
        """States are equal if they are the same object."""
        if not isinstance(other, StateBase):
            return NotImplemented
        return id(self) == id(other)

    @property
    def is_atomic(self) -> bool:
        return True

    @property
    def is_final(self) -> bool:
        return False

    @property
    def children(self) -> Dict[str, "StateBase"]:
        return {}

    @property
    def always(self) -> List[Transition]:
        return self._always

    @property
    def event_names(self) -> List[str]:
        """Event names this node declares handlers for, in declaration order."""
        return list(self._transitions)

    def add_transitions(self, event_name: str, transitions: List[Transition]) -> None:
        """Append transitions for an event, keeping declaration order."""
        self._transitions.setdefault(event_name, []).extend(transitions)

    def transitions_for(self, event_name: str) -> List[Transition]:
        """Transitions declared on this node for the event, highest priority first."""
        return _TransitionPrioritySorter().sort(self._transitions.get(event_name, []))

    def iter_transitions(self) -> Iterator[Tuple[Optional[str], Transition]]:
        """Every transition of this node, paired with its event name (None for eventless ones)."""
        for event_name, transitions in self._transitions.items():
            for t in transitions:
                yield event_name, t
        for t in self._always:
            yield None, t
