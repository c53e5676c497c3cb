"""
Credential store.

Holds the scoped bearer tokens mounted for the job and picks the one that
authorizes a given transfer.
"""

import json
import os
import time
from collections.abc import Iterable, Iterator
from pathlib import Path

from osdf_transfer.exceptions import (
    ConfigurationError,
    NoMatchingCredentialError,
    NoPrefixMatchError,
)
from osdf_transfer.logging import get_logger, truncate_token
from osdf_transfer.types.credentials import Credential
from osdf_transfer.types.transfers import Verb

logger = get_logger("credentials")

CREDS_ENV_VAR = "_CONDOR_CREDS"
CREDENTIAL_SUFFIX = ".use"

# The federation may introduce further actions; only these two mappings are
# consulted when picking a token.
_VERB_ACTIONS: dict[Verb, tuple[str, ...]] = {
    Verb.GET: ("storage.read",),
    Verb.PUT: ("storage.create", "storage.modify"),
}


def verb_actions(verb: Verb) -> tuple[str, ...]:
    """Return the scope actions that authorize ``verb``."""
    try:
        return _VERB_ACTIONS[Verb(verb)]
    except (KeyError, ValueError) as e:
        raise ValueError(f"Unsupported transfer verb: {verb!r}") from e


def load_credential_file(path: str | Path) -> Credential:
    """
    Load a single ``.use`` credential file.

    Raises:
        ConfigurationError: If the file cannot be read or is not a valid credential
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except OSError as e:
        raise ConfigurationError(f"Cannot read credential file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Malformed JSON in credential file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Credential file {path} does not contain a JSON object")

    try:
        return Credential.from_dict(data)
    except KeyError as e:
        raise ConfigurationError(f"Credential file {path} is missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Credential file {path} is invalid: {e}") from e


class CredentialStore:
    """
    Immutable, ordered set of credentials.

    Example:
        ```python
        store = CredentialStore.from_env()
        cred = store.select(Verb.GET, "/read/scope/file.bin")
        ```
    """

    def __init__(self, credentials: Iterable[Credential] = ()) -> None:
        self._credentials: tuple[Credential, ...] = tuple(credentials)

    @classmethod
    def from_directory(cls, directory: str | Path) -> "CredentialStore":
        """
        Load every ``*.use`` file in ``directory``, in sorted name order.

        Raises:
            ConfigurationError: If the directory or any credential file is unreadable
        """
        directory = Path(directory)
        logger.info("Reading cred directory: %s", directory)
        try:
            filenames = sorted(
                entry.name
                for entry in os.scandir(directory)
                if entry.name.endswith(CREDENTIAL_SUFFIX) and entry.is_file()
            )
        except OSError as e:
            raise ConfigurationError(f"Error reading credential directory {directory}: {e}") from e

        credentials = []
        for name in filenames:
            logger.info("reading cred %s", name)
            cred = load_credential_file(directory / name)
            logger.info("found scope %s", list(cred.scope))
            credentials.append(cred)

        if not credentials:
            logger.warning("No %s credential files found in %s", CREDENTIAL_SUFFIX, directory)

        return cls(credentials)

    @classmethod
    def from_env(cls) -> "CredentialStore":
        """
        Load credentials from the directory named by ``_CONDOR_CREDS``.

        Raises:
            ConfigurationError: If the variable is unset or the directory is unreadable
        """
        directory = os.environ.get(CREDS_ENV_VAR)
        if not directory:
            raise ConfigurationError(f"{CREDS_ENV_VAR} environment variable not set")
        return cls.from_directory(directory)

    def __len__(self) -> int:
        return len(self._credentials)

    def __iter__(self) -> Iterator[Credential]:
        return iter(self._credentials)

    def select(self, verb: Verb, path: str, now: float | None = None) -> Credential:
        """
        Pick the credential that authorizes ``verb`` on ``path``.

        The first unexpired credential with a matching scope wins. If only
        expired matches exist, the last one seen is returned anyway since the
        server may still accept it.

        Args:
            verb: Transfer direction
            path: Request path relative to the namespace prefix
            now: Current epoch seconds (default: ``time.time()``)

        Raises:
            NoMatchingCredentialError: If no credential has a matching scope
        """
        actions = verb_actions(verb)
        if now is None:
            now = time.time()
        logger.info("getting correct cred to match scope %s and path: %s", list(actions), path)

        expired: Credential | None = None
        for cred in self._credentials:
            for entry in cred.scopes():
                if not entry.authorizes(actions, path):
                    continue
                if cred.is_expired(now):
                    expired = cred
                else:
                    logger.debug("selected cred %s", truncate_token(cred.access_token))
                    return cred

        if expired is not None:
            logger.warning("only valid cred is expired. will try using it anyway")
            logger.debug("selected cred %s", truncate_token(expired.access_token))
            return expired

        raise NoMatchingCredentialError(path, actions)

    def select_for_url(
        self,
        verb: Verb,
        url: str,
        namespace_prefix: str,
        now: float | None = None,
    ) -> Credential:
        """
        Strip ``namespace_prefix`` from ``url`` and select a credential for the rest.

        Raises:
            NoPrefixMatchError: If ``url`` does not start with ``namespace_prefix``
            NoMatchingCredentialError: If no credential has a matching scope
        """
        path = strip_prefix(url, namespace_prefix)
        return self.select(verb, path, now=now)


def strip_prefix(url: str, prefix: str) -> str:
    """
    Return the part of ``url`` after ``prefix``.

    Raises:
        NoPrefixMatchError: If ``url`` does not start with ``prefix``
    """
    if not url.startswith(prefix):
        raise NoPrefixMatchError(url, prefix)
    return url[len(prefix):]
