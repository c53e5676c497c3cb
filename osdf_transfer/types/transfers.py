"""Transfer and origin discovery data models."""

from dataclasses import dataclass
from enum import Enum


class Verb(str, Enum):
    """Transfer direction."""

    GET = "get"
    PUT = "put"


@dataclass(frozen=True)
class OriginInfo:
    """Result of resolving a federation path through the director."""

    namespace_prefix: str  # e.g. "osdf:///icecube/wipac"
    origins: tuple[str, ...]  # candidate origin base URLs, in header order


@dataclass(frozen=True)
class TransferRequest:
    """A single object transfer requested from the command line."""

    url: str
    local_path: str
    verb: Verb


@dataclass
class TransferResult:
    """Outcome of a successful transfer."""

    url: str
    origin_url: str
    local_path: str
    verb: Verb
    status_code: int
    bytes_transferred: int
