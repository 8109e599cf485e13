"""Connector domain - one live MPD session and everything that keeps it alive.

This domain handles:
- Connecting, reconnecting and shutting down (state machine + supervisor)
- Serialized command batches that interrupt the idle wait
- Subsystem change notifications (idle) and periodic status refresh (heartbeat)
- Delivering notifications to the presentation layer through hooks
"""

# Composition root
from .connector import Connector

# Errors
from .errors import (
    ConnectorError,
    NotConnectedError,
    ConnectionLostError,
    ConnectorStoppedError,
    GatewayReentryError,
    InvalidTransitionError,
)

# Hooks
from .hooks import ConnectorHooks, ImmediateScheduler, Scheduler

# State
from .state import ConnectionState

# Status
from .status import STATUS_KEYS, Subsystem

__all__ = [
    # Composition root
    "Connector",
    # Errors
    "ConnectorError",
    "NotConnectedError",
    "ConnectionLostError",
    "ConnectorStoppedError",
    "GatewayReentryError",
    "InvalidTransitionError",
    # Hooks
    "ConnectorHooks",
    "ImmediateScheduler",
    "Scheduler",
    # State
    "ConnectionState",
    # Status
    "STATUS_KEYS",
    "Subsystem",
]
