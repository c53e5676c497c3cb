"""OSDF transfer client exception classes."""


class OSDFError(Exception):
    """Base exception for all OSDF transfer client errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(OSDFError):
    """Raised when client configuration or credential files are invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


# ============================================================================
# Credential selection
# ============================================================================


class CredentialsError(OSDFError):
    """Base class for credential selection failures."""

    pass


class NoPrefixMatchError(CredentialsError):
    """Raised when a URL does not start with the resolved namespace prefix."""

    def __init__(self, url: str, prefix: str) -> None:
        super().__init__(
            "NO_PREFIX_MATCH", f"url {url} does not match OSDF prefix {prefix}"
        )
        self.url = url
        self.prefix = prefix


class NoMatchingCredentialError(CredentialsError):
    """Raised when no credential carries a scope for the requested operation."""

    def __init__(self, path: str, actions: tuple[str, ...]) -> None:
        super().__init__(
            "NO_MATCHING_CREDENTIAL",
            f"No matching credentials for path {path} (actions: {', '.join(actions)})",
        )
        self.path = path
        self.actions = actions


# ============================================================================
# Origin discovery
# ============================================================================


class DirectoryError(OSDFError):
    """Base class for origin discovery failures."""

    pass


class NotFederationUrlError(DirectoryError):
    """Raised when a URL does not use the federation scheme."""

    def __init__(self, url: str) -> None:
        super().__init__("NOT_FEDERATION_URL", f"url is not an OSDF url: {url}")
        self.url = url


class MissingHeaderError(DirectoryError):
    """Raised when the director response lacks a required header."""

    def __init__(self, header: str) -> None:
        super().__init__(
            "MISSING_HEADER", f"No {header} header when locating origins"
        )
        self.header = header


class HeaderParseError(DirectoryError):
    """Raised when a director response header is malformed."""

    def __init__(self, header: str, value: str) -> None:
        super().__init__(
            "HEADER_PARSE_ERROR", f"Error parsing {header} header: {value!r}"
        )
        self.header = header
        self.value = value


class DiscoveryRequestError(DirectoryError):
    """Raised when the director cannot be reached or answers with an error status."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__("DISCOVERY_FAILED", message)
        self.status_code = status_code
        self.body = body


class NoOriginsAvailableError(DirectoryError):
    """Raised when a namespace resolves to an empty origin list."""

    def __init__(self, namespace_prefix: str) -> None:
        super().__init__(
            "NO_ORIGINS_AVAILABLE", f"No origins available for {namespace_prefix}"
        )
        self.namespace_prefix = namespace_prefix


# ============================================================================
# Transfer
# ============================================================================


class TransferError(OSDFError):
    """Raised when an object transfer fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        code: str = "TRANSFER_FAILED",
    ) -> None:
        super().__init__(code, message)
        self.status_code = status_code
        self.body = body


class ConnectionFailedError(TransferError):
    """Raised when the origin cannot be reached after all retries."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONNECTION_ERROR")
