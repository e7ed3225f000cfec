"""Telephony service exceptions."""


class TelephonyError(Exception):
    """Base exception for telephony operations."""


class TelephonyValidationError(TelephonyError, ValueError):
    """Raised when options or a webhook payload are malformed or incomplete.

    Always a caller bug; never retried.
    """


class TelephonyConfigurationError(TelephonyError):
    """Raised when telephony configuration is missing or invalid.

    Covers document-builder invariants too (conference size out of bounds,
    duplicate menu digits). Raised before any network call is attempted.
    """


class TelephonyProviderError(TelephonyError):
    """Raised when a telephony provider operation fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        operation: str | None = None,
        target: str | None = None,
    ) -> None:
        self.provider = provider
        self.operation = operation
        self.target = target
        super().__init__(f"[{provider}] {message}")


class TelephonyNotFoundError(TelephonyError):
    """Raised when a call or recording id is unknown to the provider."""

    def __init__(self, resource: str, target: str, operation: str | None = None) -> None:
        self.resource = resource
        self.target = target
        self.operation = operation
        super().__init__(f"{resource} {target} not found")
