# appflow/runtime/graph.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""Graph-based state machine structure management."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from appflow.core.base import StateBase
from appflow.core.errors import StateNotFoundError, ValidationError
from appflow.core.events import done_invoke, done_state, error_invoke
from appflow.core.states import CompositeState
from appflow.core.transitions import Transition


class StateGraph:
    """
    Indexes a statically defined state tree. Nodes keep their own transition
    tables and children; the graph adds the lookups the interpreter needs:
    ids, ancestor walks, initial descent, transition domains and target
    resolution.

    Indexing binds each node to its dotted id and registers the completion and
    invocation transitions under their internal event names. A definition is
    bound once and then shared read-only by every graph built over it.
    """

    def __init__(self, root: CompositeState) -> None:
        if not isinstance(root, CompositeState):
            raise ValidationError("The root of a state machine must be a CompositeState")
        self._root = root
        self._nodes: Dict[str, StateBase] = {}
        self._errors: List[str] = []
        self._index(root, parent=None, state_id=root.name)
        for state in self._nodes.values():
            for _, transition in list(state.iter_transitions()):
                self._resolve(state, transition)

    @property
    def root(self) -> CompositeState:
        return self._root

    def _index(self, state: StateBase, parent: Optional[StateBase], state_id: str) -> None:
        if state_id in self._nodes:
            raise ValidationError(f"Duplicate state id '{state_id}'")
        if state._bound and state.id != state_id:
            raise ValidationError(f"State '{state.name}' is already bound as '{state.id}'")
        if not state._bound:
            state.id = state_id
            state.parent = parent
            if state.on_done:
                state.add_transitions(done_state(state_id), state.on_done)
            if state.invoke is not None:
                if state.invoke.id is None:
                    state.invoke.id = state_id
                state.add_transitions(done_invoke(state.invoke.id), state.invoke.on_done)
                state.add_transitions(error_invoke(state.invoke.id), state.invoke.on_error)
            state._bound = True
        self._nodes[state_id] = state
        for child in state.children.values():
            child_id = child.name if state is self._root else f"{state_id}.{child.name}"
            self._index(child, state, child_id)

    def _resolve(self, source: StateBase, transition: Transition) -> None:
        transition.source = source
        if transition.is_targetless:
            return
        try:
            transition.target_state = self.resolve_target(source, transition.target)
        except StateNotFoundError as e:
            self._errors.append(str(e))

    def resolve_target(self, source: StateBase, ref: str) -> StateBase:
        """
        Resolve a target reference declared on ``source``:
        ``Name`` or ``Name.Child`` is looked up among the source's siblings,
        ``.Child`` among its own children, and ``#A.B`` from the root.
        """
        if ref.startswith("#"):
            scope: StateBase = self._root
            path = ref[1:]
        elif ref.startswith("."):
            scope = source
            path = ref[1:]
        else:
            scope = source.parent if source.parent is not None else self._root
            path = ref
        node = scope
        for segment in path.split("."):
            children = node.children
            if segment not in children:
                raise StateNotFoundError(f"Transition target '{ref}' from '{source.id}' does not exist")
            node = children[segment]
        return node

    def get_state(self, state_id: str) -> StateBase:
        """Look up a state by its dotted id."""
        try:
            return self._nodes[state_id]
        except KeyError:
            raise StateNotFoundError(f"State '{state_id}' does not exist") from None

    def get_all_states(self) -> List[StateBase]:
        """Every node, root first, in depth-first declaration order."""
        return list(self._nodes.values())

    def get_ancestors(self, state: StateBase) -> List[StateBase]:
        """Get all ancestor states in order from immediate parent to root."""
        ancestors = []
        current = state.parent
        while current is not None:
            ancestors.append(current)
            current = current.parent
        return ancestors

    def get_path(self, state: StateBase) -> Tuple[StateBase, ...]:
        """Path from the top-level state down to ``state``; the root is excluded."""
        if state is self._root:
            return ()
        chain = [state] + [s for s in self.get_ancestors(state) if s is not self._root]
        return tuple(reversed(chain))

    def initial_descent(self, state: StateBase) -> List[StateBase]:
        """States entered below ``state`` by following initial children down to a leaf."""
        descent = []
        current = state
        while isinstance(current, CompositeState):
            child = current.initial_state
            if child is None:
                break
            descent.append(child)
            current = child
        return descent

    def is_descendant(self, state: StateBase, ancestor: StateBase) -> bool:
        return ancestor in self.get_ancestors(state)

    def transition_domain(self, source: StateBase, target: StateBase) -> StateBase:
        """
        Least common proper compound ancestor of source and target. States below the
        domain are exited and re-entered; the domain itself stays active.
        """
        for ancestor in self.get_ancestors(source):
            if self.is_descendant(target, ancestor):
                return ancestor
        return self._root

    def validate(self) -> List[str]:
        """Validate the graph structure."""
        errors = list(self._errors)
        for state in self._nodes.values():
            if isinstance(state, CompositeState):
                if not state.children:
                    errors.append(f"Composite state '{state.id}' has no children")
                elif state.initial_state is None:
                    errors.append(f"Composite state '{state.id}' has no child named '{state.initial_name}'")
        return errors
