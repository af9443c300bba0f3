# appflow/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details


class HSMError(Exception):
    """
    Base exception class for errors within the hierarchical state machine engine.
    """


class StateNotFoundError(HSMError):
    """
    Raised when a requested state does not exist in the machine or hierarchy.
    """


class TransitionError(HSMError):
    """
    Raised when an attempted state transition is invalid or cannot be completed.
    """


class GuardError(TransitionError):
    """
    Raised when a guard fails with an exception instead of returning a verdict.
    """

    def __init__(self, guard_name: str, cause: Exception) -> None:
        super().__init__(f"Guard '{guard_name}' failed: {cause}")
        self.guard_name = guard_name
        self.cause = cause


class ActionError(TransitionError):
    """
    Raised when an entry, exit or transition action fails.
    """

    def __init__(self, action_name: str, cause: Exception) -> None:
        super().__init__(f"Action '{action_name}' failed: {cause}")
        self.action_name = action_name
        self.cause = cause


class ValidationError(HSMError):
    """
    Raised when validation detects configuration or runtime constraints violations.
    """


class InvalidStateError(HSMError):
    """
    Raised when the machine is asked to do something its lifecycle does not allow,
    such as processing events before it was started.
    """
