"""appflow: hierarchical state machine driving application navigation and authentication

Responsibilities:
    - Hierarchical state definition (atomic, compound and final states)
    - Event dispatch with bubbling, guards and ordered actions
    - Invoked asynchronous services with cancellation on exit
    - Completion propagation from final children to their parents
    - The concrete application flow (Init, Welcome, Onboarding, Login, Home, Review, Settings)

Cross-cutting Concerns:
    Concurrency:
        - Single asyncio event loop; events and service results share one lock
        - Configurations are immutable snapshots committed atomically

    Error Handling:
        - Structured error hierarchy rooted at HSMError
        - Guard and action faults roll back the whole step

    Logging:
        - Standard library logging, one logger per module
        - LoggingHook for opt-in lifecycle traces
"""

from appflow.core.configuration import StateConfiguration
from appflow.core.errors import (
    ActionError,
    GuardError,
    HSMError,
    InvalidStateError,
    StateNotFoundError,
    TransitionError,
    ValidationError,
)
from appflow.core.events import Event
from appflow.core.options import MachineOptions
from appflow.core.states import CompositeState, FinalState, Invoke, State
from appflow.core.transitions import Transition
from appflow.runtime.interpreter import StateMachine
from appflow.runtime.invocations import ServiceOutcome

__version__ = "0.1.0"

__all__ = [
    "ActionError",
    "CompositeState",
    "Event",
    "FinalState",
    "GuardError",
    "HSMError",
    "InvalidStateError",
    "Invoke",
    "MachineOptions",
    "ServiceOutcome",
    "State",
    "StateConfiguration",
    "StateMachine",
    "StateNotFoundError",
    "Transition",
    "TransitionError",
    "ValidationError",
]
