"""Blocklist feed download."""

import logging

import requests

from ip_unban.errors import FetchError
from ip_unban.models.blocklist import Blocklist
from ip_unban.services.blocklist_parser import (
    DEFAULT_DELIMITER,
    DEFAULT_ENCODING,
    parse_blocklist,
)


logger = logging.getLogger(__name__)


def fetch_blocklist(
    url: str,
    timeout: int = 30,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
    session: requests.Session | None = None,
) -> Blocklist:
    """Download and parse the blocklist feed.

    Args:
        url: Feed URL.
        timeout: Request timeout in seconds.
        delimiter: Feed field delimiter.
        encoding: Feed character encoding.
        session: Optional requests session (a plain GET is used otherwise).

    Returns:
        Blocklist: Parsed blocklist.

    Raises:
        FetchError: On transport errors or a non-success HTTP status.
        ParseError: If the payload cannot be tokenized.
    """
    http = session or requests

    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Blocklist download from {url} failed: {e}")
        raise FetchError(f"GET {url}: {e}") from e

    blocklist = parse_blocklist(response.content, delimiter, encoding)
    logger.info(
        f"Successfully parsed banned IP list for a total of {len(blocklist)} IPs",
        extra={"url": url, "bytes": len(response.content)},
    )
    return blocklist
