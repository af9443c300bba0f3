# appflow/runtime/interpreter.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, List, Optional, Set, Tuple, Union

from appflow.core.actions import read_only
from appflow.core.base import StateBase
from appflow.core.configuration import StateConfiguration
from appflow.core.errors import HSMError, InvalidStateError, TransitionError
from appflow.core.events import DoneStateEvent, Event, InitEvent, done_state, is_internal_name, to_event
from appflow.core.hooks import HookManager
from appflow.core.options import MachineOptions
from appflow.core.states import CompositeState
from appflow.core.transitions import Transition, _ActionExecutor, _GuardEvaluator
from appflow.core.validations import Validator
from appflow.runtime.graph import StateGraph
from appflow.runtime.invocations import Invocation, InvocationRegistry, ServiceOutcome

logger = logging.getLogger(__name__)

TransitionListener = Callable[[StateConfiguration], Any]


@dataclass
class _Step:
    """
    Working copy of the machine for one macrostep. Nothing here is visible to
    observers until the interpreter commits it.
    """

    path: List[StateBase]
    context: Any
    event: Event
    internal: Deque[Event] = field(default_factory=deque)
    exited: List[StateBase] = field(default_factory=list)
    started: List[Invocation] = field(default_factory=list)
    done: bool = False


class StateMachine:
    """
    Asynchronous interpreter for a hierarchical state definition.

    ``send`` and invocation results are serialized through one lock, so each is
    processed to completion (including eventless transitions and completion
    events) before the next one starts. Every processed event either commits a
    new StateConfiguration or leaves the previous one untouched.
    """

    def __init__(
        self,
        definition: CompositeState,
        initial_context: Any,
        options: Optional[MachineOptions] = None,
        hooks: Optional[List[Any]] = None,
        validator: Optional[Validator] = None,
    ) -> None:
        """
        :param definition: Root compound state of the machine.
        :param initial_context: Context the machine starts with.
        :param options: Named guards, actions and services, plus engine limits.
        :param hooks: Optional hook objects implementing on_enter, on_exit, on_transition, on_error.
        :param validator: Optional validator; the default one is used otherwise.
        :raises ValidationError: If the definition is inconsistent.
        """
        self._graph = StateGraph(definition)
        self._options = options or MachineOptions()
        self._hooks = HookManager(hooks)
        self._validator = validator or Validator()
        self._validator.validate_state_machine(self)

        self._initial_context = initial_context
        self._path: Tuple[StateBase, ...] = ()
        self._context = initial_context
        self._configuration: Optional[StateConfiguration] = None
        self._invocations = InvocationRegistry()
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[TransitionListener] = []
        self._outbox: Deque[StateConfiguration] = deque()
        self._notifying = False
        self._lock = asyncio.Lock()
        self._started = False
        self._stopped = False
        self._done = False

    @property
    def graph(self) -> StateGraph:
        return self._graph

    @property
    def options(self) -> MachineOptions:
        return self._options

    @property
    def configuration(self) -> Optional[StateConfiguration]:
        """The last committed configuration, or None before start()."""
        return self._configuration

    @property
    def context(self) -> Any:
        return self._context

    @property
    def done(self) -> bool:
        """True once a final child of the root has been entered."""
        return self._done

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    @property
    def active_invocations(self) -> List[str]:
        return self._invocations.ids()

    def register_hook(self, hook: Any) -> None:
        self._hooks.register_hook(hook)

    def on_transition(self, callback: TransitionListener) -> Callable[[], None]:
        """
        Register a listener called with every new configuration, in registration
        order. Configurations reach listeners in the order they were committed.
        Returns a function that removes the listener again.
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def start(self) -> StateConfiguration:
        """
        Enter the root's initial path and begin the invocations of the entered states.
        Starting an already started machine returns its current configuration.
        """
        async with self._lock:
            if self._stopped:
                raise InvalidStateError("State machine has been stopped")
            if self._started:
                return self._configuration
            event = InitEvent()
            step = _Step(path=[], context=self._initial_context, event=event)
            try:
                await self._enter(step, self._graph.initial_descent(self._graph.root))
                await self._run_to_completion(step)
            except Exception as error:
                await self._hooks.execute_on_error(error)
                raise
            self._started = True
            configuration = self._commit(step)
        await self._drain_notifications()
        return configuration

    async def stop(self) -> None:
        """
        Stop the machine. Live invocations are cancelled and their results discarded.
        """
        async with self._lock:
            if not self.running:
                return
            self._stopped = True
            self._invocations.clear()
            for state in reversed(self._path):
                await self._hooks.execute_on_exit(state)
            tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("state machine stopped in %s", self._configuration)

    async def send(self, event: Union[Event, str]) -> StateConfiguration:
        """
        Process an event to completion and return the resulting configuration.
        Events nobody handles leave the configuration unchanged.

        :raises InvalidStateError: If the machine is not running.
        :raises TransitionError: If a guard or action fails, in which case nothing is
            committed, or if the event uses a name reserved for internal events.
        """
        event = to_event(event)
        if is_internal_name(event.name):
            raise TransitionError(f"Event name '{event.name}' is reserved for internal events")
        async with self._lock:
            if not self.running:
                raise InvalidStateError("State machine not running")
            configuration = await self._process(event)
        await self._drain_notifications()
        return configuration

    async def notify_service_result(self, invocation_id: str, outcome: ServiceOutcome) -> StateConfiguration:
        """
        Deliver the outcome of an invocation. If the invocation is still live it is
        processed like an event by its owning state's on_done/on_error transitions;
        otherwise the result is discarded.
        """
        async with self._lock:
            if not self.running:
                logger.debug("machine not running; discarding result of invocation %s", invocation_id)
                return self._configuration
            invocation = self._invocations.get(invocation_id)
            if invocation is None:
                logger.debug("discarding stale result of invocation %s", invocation_id)
                return self._configuration
            configuration = await self._process(invocation.to_event(outcome), resolved=invocation)
        await self._drain_notifications()
        return configuration

    async def settle(self) -> Optional[StateConfiguration]:
        """
        Wait until no invocation task is running, including tasks started while waiting.
        A service that never completes keeps this waiting as well.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self._configuration

    async def _process(self, event: Event, resolved: Optional[Invocation] = None) -> StateConfiguration:
        step = _Step(path=list(self._path), context=self._context, event=event)
        try:
            transition = self._select(step, event)
            if transition is None:
                if resolved is not None:
                    self._invocations.pop(resolved.id)
                logger.debug("no transition for %s in %s", event.name, self._configuration)
                return self._configuration
            await self._execute(step, transition)
            await self._run_to_completion(step)
        except Exception as error:
            logger.debug("%s rolled back in %s: %s", event.name, self._configuration, error)
            await self._hooks.execute_on_error(error)
            raise
        if resolved is not None:
            self._invocations.pop(resolved.id)
        return self._commit(step)

    def _select(self, step: _Step, event: Event) -> Optional[Transition]:
        """
        Find the transition for an event: start at the active leaf and bubble up
        through its ancestors to the root, taking the first enabled transition.
        """
        for state in self._bubbling_order(step):
            for transition in state.transitions_for(event.name):
                if self._guards_pass(transition, step.context, event):
                    return transition
        return None

    def _select_eventless(self, step: _Step) -> Optional[Transition]:
        for state in self._bubbling_order(step):
            for transition in state.always:
                if self._guards_pass(transition, step.context, step.event):
                    return transition
        return None

    def _bubbling_order(self, step: _Step) -> List[StateBase]:
        return list(reversed(step.path)) + [self._graph.root]

    def _guards_pass(self, transition: Transition, context: Any, event: Event) -> bool:
        guards = [self._options.resolve_guard(g) for g in transition.guards]
        return _GuardEvaluator().evaluate(guards, read_only(context), event)

    async def _execute(self, step: _Step, transition: Transition) -> None:
        """Run one microstep: exit, transition actions, enter."""
        source = transition.source
        target = transition.target_state
        actions = [self._options.resolve_action(a) for a in transition.actions]

        if target is None:
            step.context = await _ActionExecutor().execute(actions, step.context, step.event)
            await self._hooks.execute_on_transition(source, None)
            return

        domain = self._graph.transition_domain(source, target)
        await self._exit(step, domain)
        step.context = await _ActionExecutor().execute(actions, step.context, step.event)
        await self._hooks.execute_on_transition(source, target)

        entering = [target] + [s for s in self._graph.get_ancestors(target) if self._graph.is_descendant(s, domain)]
        entering.reverse()
        entering.extend(self._graph.initial_descent(target))
        await self._enter(step, entering)
        logger.debug("%s: %s -> %s", step.event.name, source.id, target.id)

    async def _exit(self, step: _Step, domain: StateBase) -> None:
        """Exit every active state below the domain, innermost first."""
        while step.path and step.path[-1] is not domain:
            state = step.path.pop()
            exit_actions = [self._options.resolve_action(a) for a in state.exit_actions]
            step.context = await _ActionExecutor().execute(exit_actions, step.context, step.event)
            await self._hooks.execute_on_exit(state)
            step.exited.append(state)
            step.started = [inv for inv in step.started if inv.state is not state]

    async def _enter(self, step: _Step, entering: List[StateBase]) -> None:
        """Enter states outermost first, scheduling invocations and completion events."""
        for state in entering:
            entry_actions = [self._options.resolve_action(a) for a in state.entry_actions]
            step.context = await _ActionExecutor().execute(entry_actions, step.context, step.event)
            step.path.append(state)
            await self._hooks.execute_on_enter(state)

            if state.invoke is not None:
                step.started.append(
                    Invocation(
                        id=self._invocations.next_id(state.invoke.id),
                        invoke_id=state.invoke.id,
                        state=state,
                        service=self._options.resolve_service(state.invoke.src),
                        context=step.context,
                        event=step.event,
                    )
                )

            if state.is_final:
                parent = state.parent
                if parent is self._graph.root:
                    step.done = True
                else:
                    step.internal.append(DoneStateEvent(done_state(parent.id), state_id=parent.id))

    async def _run_to_completion(self, step: _Step) -> None:
        """
        Take eventless transitions until none is enabled, then process raised
        internal events one by one, repeating until the machine is stable.
        """
        eventless_steps = 0
        while True:
            transition = self._select_eventless(step)
            if transition is not None:
                eventless_steps += 1
                if eventless_steps > self._options.max_eventless_steps:
                    raise TransitionError(
                        f"More than {self._options.max_eventless_steps} eventless transitions in one step"
                    )
                await self._execute(step, transition)
                continue
            if not step.internal:
                return
            step.event = step.internal.popleft()
            transition = self._select(step, step.event)
            if transition is not None:
                await self._execute(step, transition)

    def _commit(self, step: _Step) -> StateConfiguration:
        for state in step.exited:
            self._invocations.drop_state(state)
        self._path = tuple(step.path)
        self._context = step.context
        self._done = self._done or step.done
        for invocation in step.started:
            self._invocations.add(invocation)
            self._spawn(invocation)
        self._configuration = self._snapshot(step.event)
        self._outbox.append(self._configuration)
        return self._configuration

    def _snapshot(self, event: Event) -> StateConfiguration:
        next_events = frozenset(
            name
            for state in (*self._path, self._graph.root)
            for name in state.event_names
            if not is_internal_name(name)
        )
        return StateConfiguration(
            value=tuple(state.name for state in self._path),
            context=self._context,
            event=event,
            done=self._done,
            next_events=next_events,
        )

    def _spawn(self, invocation: Invocation) -> None:
        task = asyncio.get_running_loop().create_task(self._run_invocation(invocation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("started invocation %s in %s", invocation.id, invocation.state.id)

    async def _run_invocation(self, invocation: Invocation) -> None:
        try:
            result = invocation.service(read_only(invocation.context), invocation.event)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.debug("invocation %s failed: %r", invocation.id, exc)
            outcome = ServiceOutcome.failure(exc)
        else:
            outcome = ServiceOutcome.success(result)
        try:
            await self.notify_service_result(invocation.id, outcome)
        except HSMError:
            logger.exception("resolving invocation %s failed; configuration kept at %s", invocation.id, self._configuration)

    async def _drain_notifications(self) -> None:
        """
        Deliver committed configurations to listeners in commit order. Only one
        drain runs at a time; configurations committed meanwhile, including by a
        listener calling send, are delivered by the drain already in progress.
        """
        if self._notifying:
            return
        self._notifying = True
        try:
            while self._outbox:
                await self._notify_listeners(self._outbox.popleft())
        finally:
            self._notifying = False

    async def _notify_listeners(self, configuration: StateConfiguration) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(configuration)
                if inspect.isawaitable(result):
                    await result
            except Exception as error:
                logger.exception("transition listener %r failed", listener)
                await self._hooks.execute_on_error(error)

    def __repr__(self) -> str:
        return f"StateMachine({self._graph.root.id}, {self._configuration})"
