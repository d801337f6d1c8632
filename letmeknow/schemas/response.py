from typing import Literal

from pydantic import BaseModel, Field

from letmeknow.api.ws.constants import (
    MSG_CLIENT_ALREADY_REGISTERED,
    MSG_CLIENT_REGISTERED,
    MSG_MESSAGE_SENT,
    ResponseType,
)


class ErrorResponse(BaseModel):
    """Error reply; ``error`` is omitted from the wire when unset."""

    type: Literal["error"] = Field(default="error", frozen=True)
    message: str
    error: str | None = None


class StatusResponse(BaseModel):
    """
    Outcome of a register or notification request.

    Attributes:
        type: ``register`` or ``notificationSent``.
        succeeded: Whether the request took effect.
        message: Human-readable outcome.
    """

    type: ResponseType = Field(frozen=True)
    succeeded: bool
    message: str

    @classmethod
    def registered(cls) -> "StatusResponse":
        return cls(
            type=ResponseType.REGISTER,
            succeeded=True,
            message=MSG_CLIENT_REGISTERED,
        )

    @classmethod
    def already_registered(cls) -> "StatusResponse":
        return cls(
            type=ResponseType.REGISTER,
            succeeded=False,
            message=MSG_CLIENT_ALREADY_REGISTERED,
        )

    @classmethod
    def notification_sent(cls) -> "StatusResponse":
        return cls(
            type=ResponseType.NOTIFICATION_SENT,
            succeeded=True,
            message=MSG_MESSAGE_SENT,
        )
