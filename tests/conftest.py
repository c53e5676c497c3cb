"""Shared fixtures for the test suite."""

from osdf_transfer.testing.conftest import (  # noqa: F401
    credential_dir,
    credential_store,
    expired_credential,
    mock_federation,
    valid_credential,
)
