# appflow/core/configuration.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Optional, Tuple

from appflow.core.events import Event


@dataclass(frozen=True)
class StateConfiguration:
    """
    Immutable snapshot of the machine: the active path through the hierarchy
    (outermost first) plus the context at that point. A new snapshot replaces
    the old one after every processed event, so observers never see a
    partially applied transition.
    """

    value: Tuple[str, ...]
    context: Any
    event: Optional[Event] = None
    done: bool = False
    next_events: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def state_id(self) -> str:
        """Dotted path of the active leaf, e.g. ``Login.Loading``."""
        return ".".join(self.value)

    def matches(self, path: str) -> bool:
        """
        True when ``path`` is a prefix of the active path, compared segment by
        segment: ``matches("Login")`` holds in ``Login.Loading``, ``matches("Log")`` does not.
        """
        segments = tuple(path.split(".")) if path else ()
        return bool(segments) and self.value[: len(segments)] == segments

    def to_strings(self) -> List[str]:
        """Every active state id, outermost first."""
        return [".".join(self.value[: i + 1]) for i in range(len(self.value))]

    def can(self, event_name: str) -> bool:
        """True when some active node declares a handler for the event."""
        return event_name in self.next_events

    def __str__(self) -> str:
        return self.state_id
