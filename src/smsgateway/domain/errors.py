"""Error taxonomy for the gateway.

Each caller-visible error carries the HTTP status the API maps it to.
SyncFailure never crosses the ActivitySync boundary and has no status.
"""


class GatewayError(Exception):
    """Base class for errors that terminate a request."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    """Malformed or missing caller input."""

    status_code = 400


class AuthenticationError(GatewayError):
    """Missing, invalid or expired credential."""

    status_code = 401


class ConfigurationError(GatewayError):
    """A required external capability is not configured."""

    status_code = 500


class DeliveryError(GatewayError):
    """The carrier rejected or failed the send."""

    status_code = 500


class SyncFailure(Exception):
    """A CRM sync step failed. Logged by ActivitySync, never surfaced."""

    def __init__(self, step: str, cause: BaseException | None = None) -> None:
        super().__init__(f"activity sync failed at step '{step}'")
        self.step = step
        self.cause = cause
