"""Exceptions raised by syncgroup-schema.

Remote failures are not wrapped: ``httpx.HTTPError`` propagates from the
client unchanged so callers see the original status and response.
"""


class ConfigurationError(Exception):
    """Raised when required identifiers, filters, or credentials are invalid.

    Always raised before any remote call is made.
    """

    pass


class ProfileNotFoundError(ConfigurationError):
    """Raised when no sync group profile is configured."""

    pass


class SchemaRefreshTimeoutError(Exception):
    """Raised when the hub schema refresh is not observed within the budget."""

    def __init__(self, timeout_seconds: float, last_update_time: object = None) -> None:
        self.timeout_seconds = timeout_seconds
        self.last_update_time = last_update_time
        super().__init__(
            f"Hub schema was not refreshed within {timeout_seconds:g} seconds "
            f"(last update: {last_update_time or 'never'})"
        )


class SyncWaitTimeoutError(Exception):
    """Raised when an in-flight sync does not finish within ``max_wait``."""

    def __init__(self, max_wait: float, sync_state: object = None) -> None:
        self.max_wait = max_wait
        self.sync_state = sync_state
        super().__init__(
            f"Sync still in state '{sync_state}' after {max_wait:g} seconds"
        )
