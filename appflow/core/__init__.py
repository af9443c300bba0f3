"""
Core package: the static model the interpreter works on.

- events, states and transitions describe the hierarchy and its handlers
- guards and actions adapt user callables to the engine's contracts
- hooks, validations and errors cover the cross-cutting concerns
- configuration holds the immutable snapshots observers receive
"""
