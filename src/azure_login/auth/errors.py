"""Authentication error types."""


class AzureAuthError(Exception):
    """Base error for login and account hydration failures."""

    def __init__(self, message: str, original_exception: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    @property
    def original_message_and_exception(self) -> str:
        if self.original_exception is None:
            return self.message
        return f"{self.message}: {self.original_exception!r}"


class ConfigurationError(AzureAuthError):
    """Required configuration is missing or malformed."""


class ProxyConfigurationError(ConfigurationError):
    """The proxy URL has no usable host or port."""


class TenantListingError(AzureAuthError):
    """The tenants endpoint answered with an error envelope."""

    def __init__(self, code: str, message: str):
        super().__init__(f"{code} - {message}")
        self.code = code
        self.remote_message = message
