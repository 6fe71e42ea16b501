"""Error taxonomy shared by the provider facade, the store and the HTTP edge."""


class PluggySyncError(Exception):
    """Base class for every error raised by this service."""


class ConfigurationError(PluggySyncError):
    """Pluggy credentials (or another required setting) are missing."""


class NotFoundError(PluggySyncError):
    """Provider 404, or a delete that affected zero rows.

    Callers dealing with optional resources treat this as an empty result.
    """


class PersistenceError(PluggySyncError):
    """The datastore rejected a read or write."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ProviderError(PluggySyncError):
    """Pluggy answered with an unexpected status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TransientFetchError(ProviderError):
    """Network failure, timeout, 429 or 5xx from Pluggy. Not retried here."""


class ProviderPayloadError(ProviderError):
    """A Pluggy response did not match the expected resource schema."""


class MalformedRequestError(PluggySyncError):
    """An inbound webhook body that cannot be dispatched."""
