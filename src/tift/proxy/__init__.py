"""Message pipeline between the client and the engine."""

from tift.proxy.duplex import DuplexProxy, Filters, Forwarder, create_duplex_proxy
from tift.proxy.engine import (
    DecoratedForwarder,
    EngineProxy,
    InputHandler,
    MessageForwarder,
    StateMachineFilter,
    create_engine_proxy,
    create_state_machine_filter,
    create_word_filter,
    handle_input,
)

__all__ = [
    "DecoratedForwarder",
    "DuplexProxy",
    "EngineProxy",
    "Filters",
    "Forwarder",
    "InputHandler",
    "MessageForwarder",
    "StateMachineFilter",
    "create_duplex_proxy",
    "create_engine_proxy",
    "create_state_machine_filter",
    "create_word_filter",
    "handle_input",
]
