"""
OSDF transfer client.

Provides the primary interface for moving objects in and out of the
federation.
"""

import os
from typing import Any

import httpx

from osdf_transfer.credentials import CredentialStore
from osdf_transfer.director import DEFAULT_DIRECTOR_URL, DirectorClient, DiscoveryCache
from osdf_transfer.exceptions import ConfigurationError
from osdf_transfer.transfer import TransferOrchestrator
from osdf_transfer.transport import HTTPTransport, RetryConfig
from osdf_transfer.types.transfers import TransferRequest, TransferResult, Verb


class OSDFClient:
    """
    Main client for OSDF object transfers.

    Wires together the credential store, the director client and the HTTP
    transport.

    Example:
        ```python
        from osdf_transfer import OSDFClient

        # Credentials from $_CONDOR_CREDS, director from $OSDF_DIRECTOR_URL
        with OSDFClient.from_env() as client:
            client.get("osdf:///icecube/wipac/file.bin", "file.bin")
            client.put("results.tar", "osdf:///icecube/wipac/results.tar")
        ```
    """

    DEFAULT_TIMEOUT = HTTPTransport.DEFAULT_TIMEOUT

    def __init__(
        self,
        credentials: CredentialStore,
        director_url: str = DEFAULT_DIRECTOR_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        cache: DiscoveryCache | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            credentials: Credential store used to authorize transfers
            director_url: Base URL of the Pelican director
            timeout: Request timeout in seconds (default: 30.0)
            retry_config: Configuration for transfer retries (optional)
            cache: Discovery cache shared across clients (optional)
            transport: httpx transport override, mainly for testing (optional)
        """
        self.credentials = credentials
        self.director_url = director_url
        self.timeout = timeout

        self._transport = HTTPTransport(
            timeout=timeout,
            retry_config=retry_config,
            transport=transport,
        )
        self.director = DirectorClient(self._transport, director_url=director_url, cache=cache)
        self._orchestrator = TransferOrchestrator(credentials, self.director, self._transport)

    @classmethod
    def from_env(
        cls,
        retry_config: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "OSDFClient":
        """
        Create a client from environment variables.

        Environment variables:
            _CONDOR_CREDS: Directory holding ``*.use`` credential files (required)
            OSDF_DIRECTOR_URL: Director base URL (optional, default: https://osdf-director.osg-htc.org)
            OSDF_TIMEOUT: Request timeout in seconds (optional, default: 30)

        Raises:
            ConfigurationError: If required environment variables are missing or invalid
        """
        credentials = CredentialStore.from_env()
        director_url = os.environ.get("OSDF_DIRECTOR_URL") or DEFAULT_DIRECTOR_URL

        timeout_str = os.environ.get("OSDF_TIMEOUT")
        timeout = cls.DEFAULT_TIMEOUT
        if timeout_str:
            try:
                timeout = float(timeout_str)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid OSDF_TIMEOUT: {timeout_str}. Must be a number of seconds"
                ) from None
            if timeout <= 0:
                raise ConfigurationError(f"Invalid OSDF_TIMEOUT: {timeout_str}. Must be positive")

        return cls(
            credentials=credentials,
            director_url=director_url,
            timeout=timeout,
            retry_config=retry_config,
            transport=transport,
        )

    @property
    def transport(self) -> HTTPTransport:
        """Get the underlying HTTP transport (for advanced use cases)."""
        return self._transport

    def execute(self, request: TransferRequest) -> TransferResult:
        """Run a prepared transfer request."""
        return self._orchestrator.execute(request)

    def get(self, url: str, local_path: str) -> TransferResult:
        """Download ``url`` into ``local_path``."""
        return self.execute(TransferRequest(url=url, local_path=local_path, verb=Verb.GET))

    def put(self, local_path: str, url: str) -> TransferResult:
        """Upload ``local_path`` to ``url``."""
        return self.execute(TransferRequest(url=url, local_path=local_path, verb=Verb.PUT))

    def close(self) -> None:
        """Close the client and release resources."""
        self._transport.close()

    def __enter__(self) -> "OSDFClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the client."""
        self.close()
