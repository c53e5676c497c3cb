"""
Pytest plugin for OSDF transfer testing fixtures.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["osdf_transfer.testing.conftest"]
"""

from osdf_transfer.testing.fixtures import (
    credential_dir,
    credential_store,
    expired_credential,
    mock_federation,
    valid_credential,
)

__all__ = [
    "valid_credential",
    "expired_credential",
    "credential_store",
    "credential_dir",
    "mock_federation",
]
