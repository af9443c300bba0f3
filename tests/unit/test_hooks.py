# tests/unit/test_hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging
from unittest.mock import MagicMock

import pytest

from appflow.core.hooks import HookManager, HookProtocol, LoggingHook
from appflow.core.states import State


class AsyncHook:
    def __init__(self):
        self.entered = []

    async def on_enter(self, state):
        self.entered.append(state.name)


@pytest.mark.asyncio
async def test_hook_manager_calls_sync_and_async_hooks():
    sync_hook = MagicMock()
    async_hook = AsyncHook()
    manager = HookManager([sync_hook])
    manager.register_hook(async_hook)
    state = State("Idle")

    await manager.execute_on_enter(state)
    await manager.execute_on_exit(state)
    await manager.execute_on_transition(state, None)
    error = RuntimeError("x")
    await manager.execute_on_error(error)

    sync_hook.on_enter.assert_called_once_with(state)
    sync_hook.on_exit.assert_called_once_with(state)
    sync_hook.on_transition.assert_called_once_with(state, None)
    sync_hook.on_error.assert_called_once_with(error)
    assert async_hook.entered == ["Idle"]
    assert len(manager.hooks) == 2


@pytest.mark.asyncio
async def test_hooks_may_implement_a_subset():
    class EnterOnly:
        def __init__(self):
            self.calls = 0

        def on_enter(self, state):
            self.calls += 1

    hook = EnterOnly()
    manager = HookManager([hook])
    await manager.execute_on_exit(State("Idle"))
    await manager.execute_on_error(RuntimeError())
    await manager.execute_on_enter(State("Idle"))
    assert hook.calls == 1


def test_logging_hook_matches_protocol():
    assert isinstance(LoggingHook(), HookProtocol)


def test_logging_hook_writes_trace(caplog):
    state = State("Idle")
    state.id = "Welcome.Idle"
    hook = LoggingHook()
    with caplog.at_level(logging.DEBUG, logger="appflow.core.hooks"):
        hook.on_enter(state)
        hook.on_exit(state)
        hook.on_transition(state, None)
        hook.on_error(RuntimeError("boom"))
    messages = [r.getMessage() for r in caplog.records]
    assert "enter Welcome.Idle" in messages
    assert "exit Welcome.Idle" in messages
    assert "transition Welcome.Idle -> (none)" in messages
    assert any("boom" in m for m in messages)
