"""Command-line interface for osdf-transfer."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

import httpx

from osdf_transfer import __version__
from osdf_transfer.client import OSDFClient
from osdf_transfer.exceptions import OSDFError
from osdf_transfer.logging import configure_logging, get_logger, mask_sensitive_data, parse_level
from osdf_transfer.transport import RetryConfig
from osdf_transfer.types.transfers import TransferRequest, Verb

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

LOG_DEFAULT_LEVEL = "warning"

logger = get_logger()


def _log_level(value: str) -> str:
    try:
        parse_level(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None
    return value


def _retries(value: str) -> int:
    try:
        retries = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid retry count: {value}") from None
    if retries < 0:
        raise argparse.ArgumentTypeError("retry count must be >= 0")
    return retries


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osdf",
        description="Transfer objects to and from an OSDF federation",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-l",
        "--log-level",
        type=_log_level,
        default=LOG_DEFAULT_LEVEL,
        help="Log level (debug, info, warning, error). Default: warning",
    )
    parser.add_argument(
        "-r",
        "--retries",
        type=_retries,
        default=1,
        help="Retries for transient transfer failures (5xx, network errors). Default: 1",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    obj = sub.add_parser("object", help="Single object operations")
    obj_sub = obj.add_subparsers(dest="object_command", required=True)

    get = obj_sub.add_parser("get", help="Download an object")
    get.add_argument("url", help="Federation URL, e.g. osdf:///namespace/path/file")
    get.add_argument("filename", help="Local destination file")

    put = obj_sub.add_parser("put", help="Upload an object")
    put.add_argument("filename", help="Local source file")
    put.add_argument("url", help="Federation URL, e.g. osdf:///namespace/path/file")

    return parser


def _transfer_request(args: argparse.Namespace) -> TransferRequest:
    verb = Verb(args.object_command)
    return TransferRequest(url=args.url, local_path=args.filename, verb=verb)


def main(
    argv: Sequence[str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> int:
    """
    Run the CLI and return the process exit code.

    Args:
        argv: Arguments (default: ``sys.argv[1:]``)
        transport: httpx transport override, used by tests
    """
    args = _build_parser().parse_args(argv)
    handler = configure_logging(level=args.log_level)

    try:
        request = _transfer_request(args)
        with OSDFClient.from_env(
            retry_config=RetryConfig(max_retries=args.retries),
            transport=transport,
        ) as client:
            result = client.execute(request)
        logger.info(
            "%s %s complete: %d bytes via %s",
            result.verb.value,
            result.url,
            result.bytes_transferred,
            result.origin_url,
        )
        return EXIT_SUCCESS
    except (OSDFError, OSError) as e:
        logger.info("Traceback:", exc_info=True)
        logger.error("Error: %s", mask_sensitive_data(str(e)))
        return EXIT_FAILURE
    finally:
        logger.removeHandler(handler)


if __name__ == "__main__":
    sys.exit(main())
