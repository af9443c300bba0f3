"""
The application flow built on the engine: event and context model, auth
adapter boundary, machine definition and screen routing.
"""

from appflow.app.auth import AuthAdapter, AuthError, AuthUser, InMemoryAuthAdapter, SignInResult
from appflow.app.machine import APP_MACHINE, BootstrapResult, LoginResult, build_options, create_app_machine
from appflow.app.model import (
    AppContext,
    AppEventType,
    Back,
    Continue,
    Logout,
    OpenLogin,
    OpenSettings,
    Start,
    StartReview,
    SubmitLogin,
)
from appflow.app.screens import Screen, ScreenRouter

__all__ = [
    "APP_MACHINE",
    "AppContext",
    "AppEventType",
    "AuthAdapter",
    "AuthError",
    "AuthUser",
    "Back",
    "BootstrapResult",
    "Continue",
    "InMemoryAuthAdapter",
    "LoginResult",
    "Logout",
    "OpenLogin",
    "OpenSettings",
    "Screen",
    "ScreenRouter",
    "SignInResult",
    "Start",
    "StartReview",
    "SubmitLogin",
    "build_options",
    "create_app_machine",
]
