"""Custom filters for uvicorn access logging."""

import logging

from pydantic import ValidationError

DEFAULT_EXCLUDED_PATHS = ("/metrics", "/health")


class ExcludeMonitoringFilter(logging.Filter):
    """
    Drops access log lines of health checks and Prometheus scrapes.

    uvicorn's logging config imports this class before the app starts, so
    settings are only loaded when the first record is filtered.
    """

    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self._excluded_paths: tuple[str, ...] | None = None

    @property
    def excluded_paths(self) -> tuple[str, ...]:
        if self._excluded_paths is None:
            try:
                from letmeknow.settings import app_settings

                self._excluded_paths = tuple(app_settings.LOG_EXCLUDED_PATHS)
            except ValidationError:
                # Invalid environment; the app itself will report it
                self._excluded_paths = DEFAULT_EXCLUDED_PATHS
        return self._excluded_paths

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in self.excluded_paths)
