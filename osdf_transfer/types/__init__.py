"""Data models for the OSDF transfer client."""

from osdf_transfer.types.credentials import Credential, ScopeEntry
from osdf_transfer.types.transfers import OriginInfo, TransferRequest, TransferResult, Verb

__all__ = [
    # Credentials
    "Credential",
    "ScopeEntry",
    # Transfers
    "OriginInfo",
    "TransferRequest",
    "TransferResult",
    "Verb",
]
