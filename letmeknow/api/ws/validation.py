import json
from typing import Any

from pydantic import ValidationError

from letmeknow.api.ws.constants import (
    MSG_INVALID_NOTIFICATION,
    MSG_INVALID_USER_ID,
    MSG_MISSING_TYPE,
    MSG_MISSING_USER_ID,
    MSG_PARSE_ERROR,
    MSG_UNKNOWN_TYPE,
    MessageType,
)
from letmeknow.exceptions import MalformedRequestError
from letmeknow.schemas.request import NotificationRequest, RegisterRequest


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def parse_message(raw: str | bytes) -> dict[str, Any]:
    """
    Parses an inbound frame and checks its message type.

    Args:
        raw: Frame payload, text or UTF-8 bytes.

    Returns:
        The decoded JSON object, with a valid ``type``.

    Raises:
        MalformedRequestError: If the frame is not a JSON object, has no
            ``type`` or an unknown one.
    """
    try:
        document = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as ex:
        # ValueError covers JSONDecodeError and UnicodeDecodeError
        raise MalformedRequestError(MSG_PARSE_ERROR, error=str(ex)) from ex

    if not isinstance(document, dict):
        raise MalformedRequestError(
            MSG_PARSE_ERROR,
            error=f"expected a JSON object, got {type(document).__name__}",
        )

    if "type" not in document:
        raise MalformedRequestError(MSG_MISSING_TYPE)

    if document["type"] not in (MessageType.REGISTER, MessageType.NOTIFICATION):
        raise MalformedRequestError(MSG_UNKNOWN_TYPE)

    return document


def parse_register(document: dict[str, Any]) -> RegisterRequest:
    """
    Builds a RegisterRequest from a parsed ``register`` message.

    Raises:
        MalformedRequestError: If ``userID`` is missing or not a string.
    """
    if "userID" not in document:
        raise MalformedRequestError(MSG_MISSING_USER_ID)

    try:
        return RegisterRequest.model_validate(document)
    except ValidationError as ex:
        raise MalformedRequestError(MSG_INVALID_USER_ID, error=str(ex)) from ex


def parse_notification(document: dict[str, Any]) -> NotificationRequest:
    """
    Builds a NotificationRequest from a parsed ``notification`` message.

    Optional payload fields of the wrong type are dropped silently;
    ``data`` that is missing or not an object, and ``targets`` that is not
    an array of strings, reject the message.

    Raises:
        MalformedRequestError: If the message is not a valid notification.
    """
    if "data" not in document:
        raise MalformedRequestError(MSG_INVALID_NOTIFICATION)

    try:
        return NotificationRequest.model_validate(document)
    except ValidationError as ex:
        raise MalformedRequestError(
            MSG_INVALID_NOTIFICATION, error=str(ex)
        ) from ex
