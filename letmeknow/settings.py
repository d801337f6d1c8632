from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def split_addr(addr: str) -> tuple[str, int]:
    """
    Split a ``[host]:port`` listen address into host and port.

    An empty host binds every interface, so ``":8080"`` becomes
    ``("0.0.0.0", 8080)``.

    Raises:
        ValueError: If the address has no port or the port is not a
            number in the 1-65535 range.
    """
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address {addr!r}, expected host:port")

    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"Port out of range in listen address {addr!r}")

    return host.strip("[]") or "0.0.0.0", port_number


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True, env_file=".env", extra="ignore"
    )

    # Listen address, [host]:port
    ADDR: str = ":8080"
    WS_PATH: str = "/websocket"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str | None = None
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]
    ENVIRONMENT: str = "development"

    # Stop the fan-out at the first recipient write failure
    FANOUT_FAIL_FAST: bool = True

    @field_validator("ADDR")
    @classmethod
    def validate_addr(cls, value: str) -> str:
        split_addr(value)
        return value

    @property
    def host(self) -> str:
        return split_addr(self.ADDR)[0]

    @property
    def port(self) -> int:
        return split_addr(self.ADDR)[1]


app_settings = Settings()
