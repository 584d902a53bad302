"""Error kinds raised or reported by the reservation dashboard."""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failure crossing the remote store boundary."""

    NETWORK = "network"
    PROTOCOL = "protocol"
    VALIDATION = "validation"


class ReservationError(Exception):
    """Base class for reservation failures surfaced to callers."""

    kind: ErrorKind = ErrorKind.PROTOCOL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkError(ReservationError):
    """Transport failure, timeout or non-2xx response from the remote store."""

    kind = ErrorKind.NETWORK


class ProtocolError(ReservationError):
    """Malformed response, explicit error field or non-success status."""

    kind = ErrorKind.PROTOCOL


def error_for(kind: ErrorKind, message: str) -> ReservationError:
    """Build the exception matching an error kind."""
    if kind == ErrorKind.NETWORK:
        return NetworkError(message)
    if kind == ErrorKind.PROTOCOL:
        return ProtocolError(message)
    return ReservationError(message)
