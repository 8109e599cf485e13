"""Connector-specific exceptions for error handling."""

import mpd

# Failures that mean the transport itself can no longer be trusted. A
# ProtocolError leaves the response stream out of sync, so it counts too.
TRANSPORT_ERRORS = (mpd.ConnectionError, mpd.ProtocolError, OSError)


class ConnectorError(Exception):
    """Base exception for connector operations."""

    pass


class NotConnectedError(ConnectorError):
    """Raised when a strict operation is attempted without a live session."""

    def __init__(self, message: str = "Not connected to MPD"):
        super().__init__(message)


class ConnectionLostError(ConnectorError):
    """Raised to a gateway caller whose command failed at the transport level."""

    pass


class ConnectorStoppedError(ConnectorError):
    """Raised when start() is called on a connector that was stopped."""

    pass


class GatewayReentryError(ConnectorError):
    """Raised when with_session() is called from inside a session function."""

    pass


class InvalidTransitionError(ConnectorError):
    """Raised on a connection state change the state machine does not allow."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Invalid transition: {current.name} -> {target.name}")
