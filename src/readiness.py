# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Wait for a deployed application to serve the expected content."""

import logging
import time
import typing

import requests

from cancellation import CancellationToken
from exceptions import ReadinessTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_CHECK_INTERVAL = 5
DEFAULT_REQUEST_TIMEOUT = 10
# requests rejects a zero timeout.
MIN_REQUEST_TIMEOUT = 0.01
# A read returns once its chunk is full, so single bytes keep every read within the request
# timeout however slowly the application answers.
READ_CHUNK_SIZE = 1


def _decode(body: bytes, encoding: typing.Optional[str]) -> str:
    """Decode a response body the way requests decodes Response.text.

    Args:
        body: The raw response body.
        encoding: The encoding announced by the response, if any.

    Returns:
        The decoded body.
    """
    try:
        return str(body, encoding or "utf-8", errors="replace")
    except (LookupError, TypeError):
        return str(body, errors="replace")


def _is_ready(
    url: str, expected: str, request_timeout: float, deadline: float, token: CancellationToken
) -> bool:
    """Check whether the application serves the expected content.

    Connection errors are expected while the application cold starts or its DNS record
    propagates, and count as not ready. The request timeout of requests bounds every socket
    read rather than the whole response, so the body is streamed and the deadline and the token
    are checked between chunks.

    Args:
        url: The application URL.
        expected: Substring the response body must contain.
        request_timeout: Time in seconds to wait for a connection or a single read.
        deadline: time.monotonic() value after which the response is abandoned.
        token: Cancellation token of the caller.

    Raises:
        CancelledError: if the token was cancelled while the response was read.

    Returns:
        True if the response body contains the expected content.
    """
    body = bytearray()
    try:
        with requests.get(url, timeout=request_timeout, stream=True) as response:
            for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
                body.extend(chunk)
                token.raise_if_cancelled()
                if time.monotonic() >= deadline:
                    logger.debug("Application at %s still answering at the deadline", url)
                    return False
            status_code = response.status_code
            encoding = response.encoding
    except requests.exceptions.RequestException as exc:
        logger.debug("Application at %s not reachable yet, %s", url, exc)
        return False
    if expected in _decode(bytes(body), encoding):
        return True
    logger.debug("Application at %s answered %s without the expected content", url, status_code)
    return False


def wait_for_ready(
    url: str,
    expected: str,
    timeout: float,
    check_interval: float = DEFAULT_CHECK_INTERVAL,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    token: typing.Optional[CancellationToken] = None,
) -> bool:
    """Poll the application until it serves the expected content.

    Args:
        url: The application URL.
        expected: Case sensitive substring the response body must contain.
        timeout: Time in seconds to wait for the application to become ready.
        check_interval: Time in seconds to wait between checks.
        request_timeout: Time in seconds a single request may take.
        token: Cancellation token of the caller.

    Raises:
        ReadinessTimeoutError: if the application did not become ready within timeout.
        CancelledError: if the token was cancelled while waiting.

    Returns:
        True once the application is ready.
    """
    token = token if token is not None else CancellationToken()
    deadline = time.monotonic() + timeout
    attempts = 0
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        token.raise_if_cancelled()
        attempts += 1
        attempt_timeout = max(token.cap(min(request_timeout, remaining)), MIN_REQUEST_TIMEOUT)
        if _is_ready(url, expected, attempt_timeout, deadline, token):
            logger.info("Application at %s ready after %d check(s)", url, attempts)
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        token.wait(min(check_interval, remaining))

    logger.error("Application at %s not ready after %s seconds", url, timeout)
    raise ReadinessTimeoutError(
        f"Timed out waiting for {url} to serve {expected!r} after {timeout} seconds."
    )
