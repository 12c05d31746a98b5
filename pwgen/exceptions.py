"""
Custom Exception Hierarchy for the password service

Provides structured exceptions for error handling and recovery.
All custom exceptions inherit from PasswordServiceError.
"""
from typing import Optional


class PasswordServiceError(Exception):
    """
    Base exception for all service-specific errors.

    Allows callers to catch every service error with a single except clause.
    """
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Configuration Errors

class ConfigurationError(PasswordServiceError):
    """
    Invalid configuration or settings.

    Raised when configuration validation fails at startup.
    """
    pass


# Protocol and Codec Errors

class ProtocolError(PasswordServiceError):
    """
    Wire-format errors during decoding or encoding.

    Base class for all message codec errors.
    """
    pass


class ParseError(ProtocolError):
    """Bytes do not form a valid fixed-layout message."""
    pass


class SerializationError(ProtocolError):
    """A message value does not fit its fixed layout."""
    pass


# Network and Transport Errors

class TransportError(PasswordServiceError):
    """
    Network transport failures.

    Fatal to the current session only, never to the acceptor.
    """
    pass


class TransportInitError(TransportError):
    """Listener or connection setup failed."""
    pass


class ReceiveError(TransportError):
    """Failed to receive a message from the peer."""
    pass


class ConnectionClosed(ReceiveError):
    """Peer closed the connection before a full message arrived."""
    pass


class SendError(TransportError):
    """Failed to send a message to the peer."""
    pass


class ShortWrite(SendError):
    """Fewer bytes than the message size reached the peer."""
    pass


# Request Validation Errors

class ValidationError(PasswordServiceError):
    """
    Request failed validation.

    Recovered inside the session and reported to the client as an
    error response; the message is the user-facing text.
    """
    pass


# Session Errors

class SessionError(PasswordServiceError):
    """
    Session lifecycle errors.

    Base class for session state machine issues.
    """
    pass


class StateTransitionError(SessionError):
    """Invalid state transition attempted."""
    def __init__(self, message: str, current_state: str, target_state: str):
        super().__init__(message, {"current_state": current_state, "target_state": target_state})
        self.current_state = current_state
        self.target_state = target_state
