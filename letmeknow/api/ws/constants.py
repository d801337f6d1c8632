from enum import StrEnum


class MessageType(StrEnum):
    """
    Inbound message types accepted by the relay.

    Attributes:
        REGISTER: Bind the connection to a userID.
        NOTIFICATION: Send a notification to other clients.
    """

    REGISTER = "register"
    NOTIFICATION = "notification"


class ResponseType(StrEnum):
    """Outbound message types written by the relay."""

    ERROR = "error"
    REGISTER = "register"
    NOTIFICATION_SENT = "notificationSent"
    NOTIFICATION = "notification"


class FrameKind(StrEnum):
    """
    WebSocket frame kinds, named after the ASGI message key that carries
    the payload.
    """

    TEXT = "text"
    BINARY = "bytes"


class RegistrationStatus(StrEnum):
    REGISTERED = "registered"
    ALREADY_REGISTERED = "already_registered"
    NOT_CONNECTED = "not_connected"


# Client-facing response messages
MSG_PARSE_ERROR = "Error parsing JSON"
MSG_MISSING_TYPE = "Error: JSON does not contain type"
MSG_UNKNOWN_TYPE = "Error: JSON type is not 'register' or 'notification'"
MSG_MISSING_USER_ID = "Error: JSON does not contain userID"
MSG_INVALID_USER_ID = "Error: userID is not a string"
MSG_NOT_REGISTERED = "Error: Client not registered"
MSG_INVALID_NOTIFICATION = "Error: JSON is not of type Notification"

MSG_CLIENT_REGISTERED = "Client registered"
MSG_CLIENT_ALREADY_REGISTERED = "Client already registered"
MSG_MESSAGE_SENT = "Message sent"
