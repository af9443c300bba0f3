# appflow/core/options.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from appflow.core.actions import ActionFn, ActionRef, _ActionAdapter
from appflow.core.errors import ValidationError
from appflow.core.guards import GuardFn, GuardRef, _GuardAdapter, callable_name
from appflow.core.states import ServiceFn, ServiceRef

DEFAULT_MAX_EVENTLESS_STEPS = 100


@dataclass
class MachineOptions:
    """
    Per-instance implementations for the names a definition refers to, plus
    engine limits. A single immutable definition can be shared by many
    machines, each with its own options (for example its own auth adapter).
    """

    guards: Dict[str, GuardFn] = field(default_factory=dict)
    actions: Dict[str, ActionFn] = field(default_factory=dict)
    services: Dict[str, ServiceFn] = field(default_factory=dict)
    max_eventless_steps: int = DEFAULT_MAX_EVENTLESS_STEPS

    def resolve_guard(self, ref: GuardRef) -> _GuardAdapter:
        if isinstance(ref, str):
            if ref not in self.guards:
                raise ValidationError(f"Unknown guard '{ref}'")
            return _GuardAdapter(ref, self.guards[ref])
        return _GuardAdapter(callable_name(ref), ref)

    def resolve_action(self, ref: ActionRef) -> _ActionAdapter:
        if isinstance(ref, str):
            if ref not in self.actions:
                raise ValidationError(f"Unknown action '{ref}'")
            return _ActionAdapter(ref, self.actions[ref])
        return _ActionAdapter(callable_name(ref), ref)

    def resolve_service(self, ref: ServiceRef) -> ServiceFn:
        if isinstance(ref, str):
            if ref not in self.services:
                raise ValidationError(f"Unknown service '{ref}'")
            return self.services[ref]
        return ref

    def is_unresolved(self, kind: str, ref: object) -> bool:
        """True when a named reference of the given kind has no implementation."""
        if not isinstance(ref, str):
            return False
        return ref not in {"guard": self.guards, "action": self.actions, "service": self.services}[kind]
