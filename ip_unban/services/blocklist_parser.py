"""Blocklist feed parser.

The feed is a delimiter-separated dump whose first column holds one address
or several joined by ``|``. The width of the feed is not fixed and the
address column routinely contains hostnames, comments and empty values.
"""

import csv
import io
import logging

from ip_unban.errors import ParseError
from ip_unban.models.blocklist import Blocklist
from ip_unban.utils.ip_utils import parse_ip, split_address_field


logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = ";"
DEFAULT_ENCODING = "cp1251"


def parse_blocklist_text(text: str, delimiter: str = DEFAULT_DELIMITER) -> Blocklist:
    """Parse decoded feed text into a Blocklist.

    Args:
        text: Decoded feed contents.
        delimiter: Field delimiter.

    Returns:
        Blocklist: Addresses found in the address column.

    Raises:
        ParseError: If any record cannot be tokenized. No partial result is
            returned in that case.
    """
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    addresses = set()
    skipped = 0

    try:
        # First record is always a header, even if it looks like an address
        next(reader, None)

        for record in reader:
            if not record:
                continue

            for candidate in split_address_field(record[0]):
                addr = parse_ip(candidate)
                if addr is None:
                    skipped += 1
                    continue
                addresses.add(addr)
    except csv.Error as e:
        raise ParseError(f"line {reader.line_num}: {e}") from e

    logger.debug(
        "Blocklist feed parsed",
        extra={"addresses": len(addresses), "skipped_entries": skipped},
    )
    return Blocklist(frozenset(addresses))


def parse_blocklist(
    data: bytes,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
) -> Blocklist:
    """Decode and parse a raw blocklist feed.

    Args:
        data: Raw feed bytes.
        delimiter: Field delimiter (default ";").
        encoding: Feed character encoding (default cp1251).

    Returns:
        Blocklist: Parsed blocklist.

    Raises:
        ParseError: If the feed cannot be decoded or tokenized.

    Examples:
        >>> sorted(map(str, parse_blocklist(b"h;h\\n1.1.1.1;x\\n")))
        ['1.1.1.1']
    """
    try:
        text = data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise ParseError(f"cannot decode feed as {encoding}: {e}") from e

    return parse_blocklist_text(text, delimiter)
