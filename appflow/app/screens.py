# appflow/app/screens.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Union

from appflow.core.configuration import StateConfiguration
from appflow.core.events import Event
from appflow.app.machine import APP_MACHINE
from appflow.runtime.interpreter import StateMachine

logger = logging.getLogger(__name__)


class Screen:
    """
    Presentation component for one top-level state. A screen only sees the
    configuration it is handed; it never reads or writes the machine's context.
    """

    def __init__(self, state_name: str) -> None:
        self.state_name = state_name

    def is_visible(self, configuration: StateConfiguration) -> bool:
        return configuration.matches(self.state_name)

    def substate(self, configuration: StateConfiguration) -> Optional[str]:
        """Name of the active child while visible, e.g. ``Loading`` for ``Login.Loading``."""
        if not self.is_visible(configuration) or len(configuration.value) < 2:
            return None
        return configuration.value[1]

    def available_events(self, configuration: StateConfiguration) -> List[str]:
        return sorted(configuration.next_events) if self.is_visible(configuration) else []

    def render(self, configuration: StateConfiguration) -> str:
        substate = self.substate(configuration)
        return f"{self.state_name} ({substate})" if substate else self.state_name

    def __repr__(self) -> str:
        return f"Screen({self.state_name})"


def default_screens() -> List[Screen]:
    """One screen per top-level state of the application machine."""
    return [Screen(name) for name in APP_MACHINE.children]


class ScreenRouter:
    """
    Keeps track of the screen matching the machine's current configuration and
    forwards events dispatched by screens back into the machine.
    """

    def __init__(self, machine: StateMachine, screens: Optional[Iterable[Screen]] = None) -> None:
        self._machine = machine
        self._screens: Dict[str, Screen] = {s.state_name: s for s in (screens or default_screens())}
        self._active: Optional[Screen] = None
        self._unsubscribe = machine.on_transition(self._on_transition)
        if machine.configuration is not None:
            self._on_transition(machine.configuration)

    @property
    def active_screen(self) -> Optional[Screen]:
        return self._active

    @property
    def screens(self) -> List[Screen]:
        return list(self._screens.values())

    def render(self) -> str:
        configuration = self._machine.configuration
        if self._active is None or configuration is None:
            return ""
        return self._active.render(configuration)

    async def dispatch(self, event: Union[Event, str]) -> StateConfiguration:
        return await self._machine.send(event)

    def close(self) -> None:
        self._unsubscribe()

    def _on_transition(self, configuration: StateConfiguration) -> None:
        visible = [s for s in self._screens.values() if s.is_visible(configuration)]
        active = visible[0] if visible else None
        if active is not self._active:
            logger.debug("screen %s -> %s", self._active, active)
        self._active = active
