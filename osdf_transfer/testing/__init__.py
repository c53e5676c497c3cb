"""OSDF transfer testing utilities.

Provides a mock federation and credential helpers for testing code that
uses the transfer client.
"""

from osdf_transfer.testing.fixtures import create_mock_credential, write_credential_file
from osdf_transfer.testing.mock import MockCall, MockFailure, MockFederation

__all__ = [
    # Mock federation
    "MockFederation",
    "MockCall",
    "MockFailure",
    # Helper functions
    "create_mock_credential",
    "write_credential_file",
]
