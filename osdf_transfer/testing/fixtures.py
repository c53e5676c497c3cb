"""
Pytest fixtures for OSDF transfer testing.

Provides credential factories and a mock federation for tests of code that
uses the transfer client.
"""

import json
import time
from collections.abc import Generator
from pathlib import Path

import pytest

from osdf_transfer.credentials import CREDS_ENV_VAR, CredentialStore
from osdf_transfer.testing.mock import MockFederation
from osdf_transfer.types.credentials import Credential


def create_mock_credential(
    access_token: str = "token",
    scope: list[str] | tuple[str, ...] = ("storage.read:/read/scope", "storage.modify:/write/scope"),
    expires_in: float = 3600,
    expires_at: float | None = None,
    token_type: str = "bearer",
) -> Credential:
    """
    Create a credential for testing.

    ``expires_at`` defaults to ``now + expires_in``; pass a negative
    ``expires_in`` for an already expired token.
    """
    if expires_at is None:
        expires_at = time.time() + expires_in
    return Credential(
        access_token=access_token,
        token_type=token_type,
        expires_in=abs(expires_in),
        expires_at=expires_at,
        scope=tuple(scope),
    )


def write_credential_file(directory: Path, credential: Credential, name: str = "cred.use") -> Path:
    """Write ``credential`` as JSON into ``directory/name``."""
    path = directory / name
    path.write_text(json.dumps(credential.to_dict(), indent=2))
    return path


# ============================================================================
# Credential Fixtures
# ============================================================================


@pytest.fixture
def valid_credential() -> Credential:
    """Provide an unexpired credential scoped for /read/scope and /write/scope."""
    return create_mock_credential()


@pytest.fixture
def expired_credential() -> Credential:
    """Provide an expired credential with the same scopes as valid_credential."""
    return create_mock_credential(access_token="expired-token", expires_in=-3600)


@pytest.fixture
def credential_store(valid_credential: Credential) -> CredentialStore:
    """Provide a store holding only valid_credential."""
    return CredentialStore([valid_credential])


@pytest.fixture
def credential_dir(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    valid_credential: Credential,
) -> Path:
    """
    Provide a credential directory with one ``.use`` file, exported as ``_CONDOR_CREDS``.

    Example:
        ```python
        def test_from_env(credential_dir):
            store = CredentialStore.from_env()
            assert len(store) == 1
        ```
    """
    directory = tmp_path / "creds"
    directory.mkdir()
    write_credential_file(directory, valid_credential)
    monkeypatch.setenv(CREDS_ENV_VAR, str(directory))
    return directory


# ============================================================================
# Federation Fixtures
# ============================================================================


@pytest.fixture
def mock_federation() -> Generator[MockFederation, None, None]:
    """
    Provide a MockFederation serving namespace ``/namespace`` from one origin.

    Example:
        ```python
        def test_download(mock_federation, credential_store, tmp_path):
            mock_federation.add_object("/read/scope/file.bin", b"data")
            client = OSDFClient(
                credential_store,
                director_url=mock_federation.director_url,
                transport=mock_federation.transport(),
            )
            client.get("osdf:///namespace/read/scope/file.bin", str(tmp_path / "f"))
        ```
    """
    federation = MockFederation(namespace="/namespace")
    yield federation
    federation.reset()
