"""osdf-transfer - Authenticated object transfers for OSDF federations."""

__version__ = "0.1.0"

from osdf_transfer.client import OSDFClient
from osdf_transfer.credentials import CredentialStore, verb_actions
from osdf_transfer.director import (
    DirectorClient,
    DiscoveryCache,
    choose_origin,
    parse_link_header,
    parse_namespace_header,
)
from osdf_transfer.exceptions import (
    ConfigurationError,
    ConnectionFailedError,
    CredentialsError,
    DirectoryError,
    DiscoveryRequestError,
    HeaderParseError,
    MissingHeaderError,
    NoMatchingCredentialError,
    NoOriginsAvailableError,
    NoPrefixMatchError,
    NotFederationUrlError,
    OSDFError,
    TransferError,
)
from osdf_transfer.logging import configure_logging, get_logger
from osdf_transfer.transfer import TransferOrchestrator
from osdf_transfer.transport import HTTPTransport, RetryConfig
from osdf_transfer.types import Credential, OriginInfo, ScopeEntry, TransferRequest, TransferResult, Verb

__all__ = [
    "__version__",
    # Main client
    "OSDFClient",
    "TransferOrchestrator",
    # Credentials
    "CredentialStore",
    "Credential",
    "ScopeEntry",
    "verb_actions",
    # Discovery
    "DirectorClient",
    "DiscoveryCache",
    "OriginInfo",
    "choose_origin",
    "parse_link_header",
    "parse_namespace_header",
    # Transfers
    "TransferRequest",
    "TransferResult",
    "Verb",
    # Exceptions
    "OSDFError",
    "ConfigurationError",
    "CredentialsError",
    "NoPrefixMatchError",
    "NoMatchingCredentialError",
    "DirectoryError",
    "NotFederationUrlError",
    "MissingHeaderError",
    "HeaderParseError",
    "DiscoveryRequestError",
    "NoOriginsAvailableError",
    "TransferError",
    "ConnectionFailedError",
    # Transport
    "HTTPTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
