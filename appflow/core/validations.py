# appflow/core/validations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, List

from appflow.core.errors import ValidationError
from appflow.core.events import is_internal_name

if TYPE_CHECKING:
    from appflow.core.options import MachineOptions
    from appflow.runtime.graph import StateGraph
    from appflow.runtime.interpreter import StateMachine


class Validator:
    """
    Performs construction-time validation of the state machine, ensuring the
    definition is structurally sound and every named guard, action and service
    has an implementation.
    """

    def __init__(self) -> None:
        self._rules_engine = _ValidationRulesEngine()

    def validate_state_machine(self, state_machine: "StateMachine") -> None:
        """
        Check the machine's states and transitions for consistency.

        :param state_machine: The state machine to validate.
        :raises ValidationError: If validation fails, listing every problem found.
        """
        errors = self._rules_engine.validate(state_machine.graph, state_machine.options)
        if errors:
            raise ValidationError("\n".join(errors))


class _ValidationRulesEngine:
    """
    Internal engine applying the structural rules of the graph followed by the
    default definition rules.
    """

    def validate(self, graph: "StateGraph", options: "MachineOptions") -> List[str]:
        errors = graph.validate()
        errors.extend(_DefaultValidationRules.check_finals(graph))
        errors.extend(_DefaultValidationRules.check_event_names(graph))
        errors.extend(_DefaultValidationRules.check_references(graph, options))
        return errors


class _DefaultValidationRules:
    """
    Provides built-in validation rules ensuring basic correctness of states,
    transitions and named implementations.
    """

    @staticmethod
    def check_finals(graph: "StateGraph") -> List[str]:
        """Final states end their parent; they declare no transitions or invocations."""
        errors = []
        for state in graph.get_all_states():
            if state.is_final and (any(True for _ in state.iter_transitions()) or state.invoke is not None):
                errors.append(f"Final state '{state.id}' cannot declare transitions or invocations")
            if state.is_final and state.parent is None:
                errors.append(f"Final state '{state.id}' must have a parent")
        return errors

    @staticmethod
    def check_event_names(graph: "StateGraph") -> List[str]:
        """External event names must be non-empty and not collide with internal ones."""
        errors = []
        for state in graph.get_all_states():
            for name in state.event_names:
                if not name:
                    errors.append(f"State '{state.id}' declares a transition for an empty event name")
                elif is_internal_name(name) and not _DefaultValidationRules._is_registered_internal(state, name):
                    errors.append(f"State '{state.id}' uses reserved event name '{name}'")
        return errors

    @staticmethod
    def _is_registered_internal(state, name: str) -> bool:
        ids = {state.id}
        if state.invoke is not None:
            ids.add(state.invoke.id)
        return any(name.endswith(f".{i}") for i in ids)

    @staticmethod
    def check_references(graph: "StateGraph", options: "MachineOptions") -> List[str]:
        """Every guard, action and service referenced by name must be implemented."""
        errors = []
        for state in graph.get_all_states():
            for ref in list(state.entry_actions) + list(state.exit_actions):
                if options.is_unresolved("action", ref):
                    errors.append(f"State '{state.id}' references unknown action '{ref}'")
            if state.invoke is not None and options.is_unresolved("service", state.invoke.src):
                errors.append(f"State '{state.id}' references unknown service '{state.invoke.src}'")
            for _, transition in state.iter_transitions():
                for guard in transition.guards:
                    if options.is_unresolved("guard", guard):
                        errors.append(f"Transition {transition!r} references unknown guard '{guard}'")
                    elif not isinstance(guard, str) and not callable(guard):
                        errors.append(f"Transition {transition!r} has a guard that is not callable")
                for action in transition.actions:
                    if options.is_unresolved("action", action):
                        errors.append(f"Transition {transition!r} references unknown action '{action}'")
                    elif not isinstance(action, str) and not callable(action):
                        errors.append(f"Transition {transition!r} has an action that is not callable")
        return errors
