# appflow/app/machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
The application flow: which screen is active, and the bootstrap, registration,
login and logout operations that move the user between screens.

The definition is built once at import time and shared by every machine; the
auth-dependent pieces (services and the logout action) are bound per machine
through MachineOptions.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from appflow.core.actions import assign
from appflow.core.events import Event
from appflow.core.options import MachineOptions
from appflow.core.states import CompositeState, FinalState, Invoke, State
from appflow.core.transitions import Transition
from appflow.app.auth import AuthAdapter
from appflow.app.model import AppContext, AppEventType, SubmitLogin
from appflow.runtime.interpreter import StateMachine

logger = logging.getLogger(__name__)

E = AppEventType

LoginService = Callable[[AppContext, SubmitLogin], Awaitable["LoginResult"]]


@dataclass(frozen=True)
class BootstrapResult:
    user_id: Optional[str]


@dataclass(frozen=True)
class LoginResult:
    id: str


def is_logged_in(context: AppContext, event: Event) -> bool:
    return context.is_logged_in


def assign_user_id(context: AppContext, event: Event) -> dict:
    """Copy the identifier of a login result into the context."""
    return {"user_id": event.data.id}


async def placeholder_login(context: AppContext, event: SubmitLogin) -> LoginResult:
    # TODO: replace with an email sign-in once the auth adapter exposes one.
    return LoginResult(id="123")


APP_MACHINE = CompositeState(
    "AppMachine",
    initial="Init",
    children=[
        CompositeState(
            "Init",
            initial="Loading",
            children=[
                State(
                    "Loading",
                    invoke=Invoke(
                        "bootstrapApp",
                        on_done=Transition("Success", actions=[assign(user_id=lambda ctx, ev: ev.data.user_id)]),
                        on_error="Error",
                    ),
                ),
                FinalState("Success"),
                FinalState("Error"),
            ],
            on_done=[Transition("Home", guards=["isLoggedIn"]), Transition("Welcome")],
        ),
        State("Review", on={E.BACK.value: "Home"}, on_done="Home"),
        CompositeState(
            "Login",
            initial="Idle",
            children=[
                State("Idle", on={E.SUBMIT_LOGIN.value: "Loading", E.BACK.value: "Done"}),
                State(
                    "Loading",
                    invoke=Invoke(
                        "loginUser",
                        on_done=Transition("Done", actions=["assignUserId"]),
                        on_error="Error",
                    ),
                ),
                State("Error"),
                FinalState("Done"),
            ],
            on_done=[Transition("Home", guards=["isLoggedIn"]), Transition("Welcome")],
        ),
        State(
            "Home",
            on={E.START_REVIEW.value: "Review", E.OPEN_SETTINGS.value: "Settings"},
        ),
        CompositeState(
            "Settings",
            initial="Idle",
            children=[
                State("Idle", on={E.BACK.value: "Done"}),
                FinalState("Done"),
            ],
            on={
                E.LOGOUT.value: Transition(
                    "Welcome",
                    actions=["logoutUser", assign(user_id=None)],
                ),
            },
            on_done="Home",
        ),
        CompositeState(
            "Onboarding",
            initial="Loading",
            children=[
                State(
                    "Loading",
                    invoke=Invoke(
                        "registerUser",
                        on_done=Transition("Success", actions=[assign(user_id=lambda ctx, ev: ev.data.user.uid)]),
                        on_error="Error",
                    ),
                ),
                State("Error"),
                State("Success", always="Idle"),
                State("Idle", on={E.CONTINUE.value: "Complete"}),
                FinalState("Complete"),
            ],
            on_done="Home",
        ),
        CompositeState(
            "Welcome",
            initial="Idle",
            children=[
                State("Idle", on={E.START.value: "Complete"}),
                FinalState("Complete"),
            ],
            on={E.OPEN_LOGIN.value: "Login"},
            on_done="Onboarding",
        ),
    ],
)


def build_options(auth: AuthAdapter, login: Optional[LoginService] = None) -> MachineOptions:
    """Bind the definition's named guards, actions and services to an auth adapter."""

    async def logout_user(context: AppContext, event: Event) -> None:
        await auth.sign_out()

    async def bootstrap_app(context: AppContext, event: Event) -> BootstrapResult:
        loop = asyncio.get_running_loop()
        first_state = loop.create_future()

        def on_auth_state(user_id: Optional[str]) -> None:
            if not first_state.done():
                first_state.set_result(user_id)

        unsubscribe = auth.observe_auth_state(on_auth_state)
        try:
            user_id = await first_state
        finally:
            unsubscribe()
        logger.debug("bootstrap found user %s", user_id)
        return BootstrapResult(user_id=user_id)

    async def register_user(context: AppContext, event: Event) -> Any:
        return await auth.sign_in_anonymously()

    return MachineOptions(
        guards={"isLoggedIn": is_logged_in},
        actions={"assignUserId": assign_user_id, "logoutUser": logout_user},
        services={
            "bootstrapApp": bootstrap_app,
            "registerUser": register_user,
            "loginUser": login or placeholder_login,
        },
    )


def create_app_machine(
    auth: AuthAdapter,
    login: Optional[LoginService] = None,
    hooks: Optional[List[Any]] = None,
) -> StateMachine:
    """
    Create an application machine over the shared definition.

    :param auth: Identity provider used by bootstrap, registration and logout.
    :param login: Service resolving a SubmitLogin into a LoginResult.
    :param hooks: Optional lifecycle hooks, e.g. LoggingHook.
    """
    return StateMachine(APP_MACHINE, AppContext(), options=build_options(auth, login), hooks=hooks)
