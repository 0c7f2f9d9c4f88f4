"""
Common utility functions for the driverbuilder.
"""

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional

import requests
from rich.console import Console
from rich.logging import RichHandler

from driverbuilder.exceptions import (
    KernelNotFoundError,
    NetworkError,
    ResolutionCancelledError,
)


# Rich console for output
console = Console(stderr=True)


def setup_logging(
    name: str = "driverbuilder",
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Set up logging with Rich handler."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


# Default logger
logger = setup_logging()


def check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    """Raise if the caller asked to stop."""
    if cancel_event is not None and cancel_event.is_set():
        raise ResolutionCancelledError("Resolution cancelled")


def http_get(
    session: requests.Session,
    url: str,
    timeout: int,
    stream: bool = False,
) -> requests.Response:
    """
    Issue a GET request and fail on transport errors or error statuses.

    Args:
        session: HTTP session to use
        url: URL to fetch
        timeout: Connect/read timeout in seconds
        stream: Defer downloading the body

    Returns:
        The response; callers close it (it is a context manager)

    Raises:
        NetworkError: On connection failure, timeout or non-2xx status
    """
    try:
        response = session.get(url, timeout=timeout, stream=stream)
    except requests.RequestException as e:
        raise NetworkError(url, str(e)) from e

    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        response.close()
        raise NetworkError(url, str(e), status_code=response.status_code) from e

    return response


def read_first_line(response: requests.Response) -> str:
    """Get the first line of a response body without trailing newline."""
    for line in response.iter_lines(decode_unicode=True):
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        return line.strip()
    return ""


def iter_body(
    response: requests.Response,
    url: str,
    chunk_size: int,
    cancel_event: Optional[threading.Event] = None,
) -> Iterable[bytes]:
    """Yield body chunks, mapping transport errors to NetworkError."""
    try:
        for chunk in response.iter_content(chunk_size=chunk_size):
            check_cancelled(cancel_event)
            if chunk:
                yield chunk
    except requests.RequestException as e:
        raise NetworkError(url, str(e)) from e


def filter_reachable_urls(
    urls: List[str],
    session: Optional[requests.Session] = None,
    timeout: int = 30,
) -> List[str]:
    """
    Keep the URLs that answer a HEAD request with 200 OK.

    Unreachable URLs are dropped rather than treated as fatal.

    Raises:
        KernelNotFoundError: If no URL is reachable
    """
    owns_session = session is None
    if owns_session:
        session = requests.Session()

    results = []
    try:
        for url in urls:
            try:
                with session.head(url, timeout=timeout, allow_redirects=True) as response:
                    status = response.status_code
            except requests.RequestException as e:
                logger.debug(f"HEAD {url} failed: {e}")
                continue
            if status == requests.codes.ok:
                logger.debug(f"Kernel package URL found: {url}")
                results.append(url)
            else:
                logger.debug(f"HEAD {url} returned {status}")
    finally:
        if owns_session:
            session.close()

    if not results:
        raise KernelNotFoundError(urls)
    return results
