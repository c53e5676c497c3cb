"""
Transfer orchestration.

Resolves the origin for a federation URL, picks a credential, rewrites the
URL onto a concrete origin and performs the authenticated GET or PUT.
"""

import contextlib
import os
import random
import tempfile
from pathlib import Path

import httpx

from osdf_transfer.credentials import CredentialStore, strip_prefix
from osdf_transfer.director import DirectorClient, choose_origin
from osdf_transfer.exceptions import TransferError
from osdf_transfer.logging import get_logger
from osdf_transfer.transport import HTTPTransport
from osdf_transfer.types.credentials import Credential
from osdf_transfer.types.transfers import OriginInfo, TransferRequest, TransferResult, Verb

logger = get_logger("transfer")

NO_BODY = "<no_body>"


def join_origin_url(origin: str, suffix: str) -> str:
    """
    Join an origin base URL and a namespace-relative path.

    ``http://origin`` and ``http://origin/`` both join with
    ``/read/scope/file.bin`` to ``http://origin/read/scope/file.bin``.
    """
    return str(httpx.URL(origin).join(suffix))


def _response_text(response: httpx.Response) -> str:
    try:
        response.read()
        return response.text
    except (httpx.HTTPError, httpx.StreamError):
        return NO_BODY


def _discard(path: str) -> None:
    with contextlib.suppress(FileNotFoundError):
        os.unlink(path)


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


class TransferOrchestrator:
    """
    Runs a single transfer end to end.

    No local file is created or opened until a credential has been selected,
    and a downloaded file only appears at its destination once the whole body
    has been received.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        director: DirectorClient,
        transport: HTTPTransport,
        rng: random.Random | None = None,
    ) -> None:
        self.credentials = credentials
        self.director = director
        self.transport = transport
        self.rng = rng

    def execute(self, request: TransferRequest) -> TransferResult:
        """
        Perform ``request``.

        Raises:
            DirectoryError: If origin discovery fails
            CredentialsError: If no credential authorizes the transfer
            TransferError: If the origin rejects the transfer or local I/O fails
        """
        info = self.director.resolve(request.url)
        cred = self.credentials.select_for_url(request.verb, request.url, info.namespace_prefix)
        origin_url = self.origin_url(request.url, info)
        logger.info("using final url %s", origin_url)

        if request.verb == Verb.GET:
            status_code, size = self._get(origin_url, request.local_path, cred)
        else:
            status_code, size = self._put(origin_url, request.local_path, cred)

        logger.info("transferred %d bytes (status %d)", size, status_code)
        return TransferResult(
            url=request.url,
            origin_url=origin_url,
            local_path=request.local_path,
            verb=request.verb,
            status_code=status_code,
            bytes_transferred=size,
        )

    def origin_url(self, url: str, info: OriginInfo) -> str:
        """
        Rewrite a federation URL onto a randomly chosen origin.

        Raises:
            NoOriginsAvailableError: If ``info`` has no origins
            NoPrefixMatchError: If ``url`` is outside the namespace
        """
        origin = choose_origin(info, self.rng)
        suffix = strip_prefix(url, info.namespace_prefix)
        return join_origin_url(origin, suffix)

    @staticmethod
    def _auth_headers(cred: Credential) -> dict[str, str]:
        return {"Authorization": f"Bearer {cred.access_token}"}

    def _get(self, url: str, local_path: str, cred: Credential) -> tuple[int, int]:
        headers = self._auth_headers(cred)

        def make_request(attempt: int) -> httpx.Response:
            return self.transport.request("GET", url, headers=headers, stream=True, attempt=attempt)

        response = self.transport.execute_with_retry(make_request)
        try:
            if not response.is_success:
                body = _response_text(response)
                raise TransferError(
                    f"Error getting file. status {response.status_code}, body {body}",
                    status_code=response.status_code,
                    body=body,
                )
            return response.status_code, self._write_atomically(Path(local_path), response)
        finally:
            response.close()

    def _write_atomically(self, target: Path, response: httpx.Response) -> int:
        """Stream the body into a temp file beside ``target``, then move it into place."""
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".part", dir=target.parent)
        except OSError as e:
            raise TransferError(f"Cannot create local file {target}: {e}") from e

        written = 0
        try:
            with os.fdopen(fd, "wb") as fh:
                for chunk in response.iter_bytes():
                    fh.write(chunk)
                    written += len(chunk)
            os.chmod(tmp_name, 0o666 & ~_current_umask())
            os.replace(tmp_name, target)
        except httpx.HTTPError as e:
            _discard(tmp_name)
            raise TransferError(f"Error reading response body: {e}") from e
        except OSError as e:
            _discard(tmp_name)
            raise TransferError(f"Error writing local file {target}: {e}") from e
        except BaseException:
            _discard(tmp_name)
            raise

        return written

    def _put(self, url: str, local_path: str, cred: Credential) -> tuple[int, int]:
        headers = self._auth_headers(cred)
        try:
            fh = open(local_path, "rb")
        except OSError as e:
            raise TransferError(f"Cannot open local file {local_path}: {e}") from e

        with fh:
            size = os.fstat(fh.fileno()).st_size

            def make_request(attempt: int) -> httpx.Response:
                fh.seek(0)
                return self.transport.request("PUT", url, headers=headers, content=fh, attempt=attempt)

            response = self.transport.execute_with_retry(make_request)

        if not response.is_success:
            body = _response_text(response)
            raise TransferError(
                f"Error transferring file. status {response.status_code}, body {body}",
                status_code=response.status_code,
                body=body,
            )
        return response.status_code, size
