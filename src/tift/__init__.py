"""tift - interactive fiction, through a filtered message pipeline."""

from tift.proxy import DuplexProxy, Filters, create_duplex_proxy, create_engine_proxy
from tift.statemachine import TERMINATE, StateMachine, create_state_machine

__version__ = "0.1.0"

__all__ = [
    "TERMINATE",
    "DuplexProxy",
    "Filters",
    "StateMachine",
    "create_duplex_proxy",
    "create_engine_proxy",
    "create_state_machine",
]
