"""
Custom exception classes for the relay.

Every request rejection carries the message sent back to the client and
whether the connection must be terminated afterwards.
"""


class RelayError(Exception):
    """
    Base exception class for rejected requests.

    Attributes:
        message: Client-facing error message.
        error: Optional detail (e.g. the parser error) sent alongside the
            message.
        terminates_connection: Whether the read loop ends after the error
            response is sent.
    """

    terminates_connection: bool = True

    def __init__(self, message: str, error: str | None = None):
        self.message = message
        self.error = error
        super().__init__(message)


class MalformedRequestError(RelayError):
    """
    Inbound message could not be understood.

    Raised for unparseable JSON, missing or wrongly typed required fields
    and unknown message types. Terminates the connection.
    """

    terminates_connection = True


class ProtocolViolationError(RelayError):
    """
    Inbound message is well-formed but not allowed in the current state.

    Raised when a notification is sent before the connection registered.
    The connection stays open.
    """

    terminates_connection = False
