# appflow/runtime/invocations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from appflow.core.base import StateBase
from appflow.core.events import DoneInvokeEvent, ErrorInvokeEvent, Event, done_invoke, error_invoke
from appflow.core.states import ServiceFn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceOutcome:
    """Result of an invoked service: either resolved ``data`` or a raised ``error``."""

    ok: bool
    data: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, data: Any = None) -> "ServiceOutcome":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: BaseException) -> "ServiceOutcome":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class Invocation:
    """
    One in-flight run of a state's service. ``id`` is unique per state entry, so a
    result from an earlier entry of the same state can never be mistaken for the
    current one.
    """

    id: str
    invoke_id: str
    state: StateBase
    service: ServiceFn
    context: Any
    event: Event

    def to_event(self, outcome: ServiceOutcome) -> Event:
        """Turn an outcome into the internal event the owning state handles."""
        if outcome.ok:
            return DoneInvokeEvent(done_invoke(self.invoke_id), invocation_id=self.id, data=outcome.data)
        return ErrorInvokeEvent(error_invoke(self.invoke_id), invocation_id=self.id, error=outcome.error)


class InvocationRegistry:
    """
    Tracks which invocations are live. At most one invocation is live per active
    state; exiting the state drops it, which is how results get cancelled: the
    underlying operation keeps running but its result no longer matches anything.
    """

    def __init__(self) -> None:
        self._live: Dict[str, Invocation] = {}
        self._counter = itertools.count(1)

    def next_id(self, invoke_id: str) -> str:
        return f"{invoke_id}:{next(self._counter)}"

    def add(self, invocation: Invocation) -> None:
        self._live[invocation.id] = invocation

    def get(self, invocation_id: str) -> Optional[Invocation]:
        return self._live.get(invocation_id)

    def pop(self, invocation_id: str) -> Optional[Invocation]:
        return self._live.pop(invocation_id, None)

    def drop_state(self, state: StateBase) -> List[Invocation]:
        """Forget every invocation owned by ``state``; their results will be discarded."""
        dropped = [inv for inv in self._live.values() if inv.state is state]
        for inv in dropped:
            del self._live[inv.id]
            logger.debug("cancelled invocation %s on exit of %s", inv.id, state.id)
        return dropped

    def ids(self) -> List[str]:
        return list(self._live)

    def clear(self) -> None:
        self._live.clear()
