"""
Runtime settings, read from the environment
"""

import dataclasses
import os
import typing

# Default maximum size of a request body decoded by scan_body
DEFAULT_MAX_BODY_SIZE = 10 * 1024 * 1024

MAX_BODY_SIZE_VAR = 'PYRESTY_MAX_BODY_SIZE'
REQUEST_TIMEOUT_VAR = 'PYRESTY_REQUEST_TIMEOUT'


@dataclasses.dataclass(frozen=True)
class Settings:
    """
    Settings shared by the router and the action dispatcher.
    """

    # Maximum request body size (in bytes) accepted when decoding JSON bodies
    max_body_size: int = DEFAULT_MAX_BODY_SIZE

    # Delay (in seconds) after which the request context reports itself as
    # expired; None to disable the deadline
    request_timeout: float | None = None

    @classmethod
    def from_env(cls, environ: typing.Mapping[str, str] | None = None
        ) -> typing.Self:
        """
        Creates settings from the PYRESTY_* environment variables. Unset or
        blank variables use the default values. Raises a ValueError if a
        variable is set to an invalid value.
        """

        if environ is None:
            environ = os.environ

        max_body_size = DEFAULT_MAX_BODY_SIZE
        raw_size = environ.get(MAX_BODY_SIZE_VAR, '').strip()
        if raw_size:
            try:
                max_body_size = int(raw_size, 10)
            except ValueError:
                raise ValueError(f"{MAX_BODY_SIZE_VAR} must be an integer, "
                    f"got {raw_size!r}") from None

            if max_body_size < 0:
                raise ValueError(f"{MAX_BODY_SIZE_VAR} must not be negative")

        request_timeout: float | None = None
        raw_timeout = environ.get(REQUEST_TIMEOUT_VAR, '').strip()
        if raw_timeout:
            try:
                request_timeout = float(raw_timeout)
            except ValueError:
                raise ValueError(f"{REQUEST_TIMEOUT_VAR} must be a number, "
                    f"got {raw_timeout!r}") from None

            if request_timeout <= 0:
                raise ValueError(f"{REQUEST_TIMEOUT_VAR} must be positive")

        return cls(max_body_size, request_timeout)
