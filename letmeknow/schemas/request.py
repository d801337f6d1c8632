from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from letmeknow.api.ws.constants import ResponseType


class RegisterRequest(BaseModel):
    """
    Request binding the connection to a user identity.

    Attributes:
        type: Always ``register``.
        user_id: Identity to register, sent as ``userID``.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["register"] = "register"
    user_id: str = Field(alias="userID", strict=True)


class ImageModel(BaseModel):
    """Notification image. A missing or non-string url becomes ``""``."""

    url: str = ""

    @field_validator("url", mode="before")
    @classmethod
    def coerce_url(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""


class NotificationData(BaseModel):
    """
    Notification payload forwarded verbatim to recipients.

    Optional text fields that are absent or not strings are treated as
    unset. An ``image`` object always yields an image record, even
    without a usable url.
    """

    model_config = ConfigDict(extra="ignore")

    type: Literal["notification"] = "notification"
    title: str | None = None
    subtitle: str | None = None
    content: str | None = None
    image: ImageModel | None = None

    @field_validator("type", mode="before")
    @classmethod
    def force_type(cls, value: Any) -> str:
        return ResponseType.NOTIFICATION.value

    @field_validator("title", "subtitle", "content", mode="before")
    @classmethod
    def drop_non_string(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("image", mode="before")
    @classmethod
    def drop_non_object(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None


class NotificationRequest(BaseModel):
    """
    Request to deliver a notification.

    Attributes:
        type: Always ``notification``.
        data: Payload sent to recipients.
        targets: userIDs or ``prefix*`` patterns; empty means every other
            connected client.
    """

    type: Literal["notification"] = "notification"
    data: NotificationData
    targets: list[str] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def require_object(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            raise ValueError("data must be an object")
        return value

    @field_validator("targets", mode="before")
    @classmethod
    def null_targets(cls, value: Any) -> Any:
        return [] if value is None else value
