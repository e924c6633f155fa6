"""Resolution of the reachability target to an address.

The probe checks that the reply comes from the target address, so a
hostname target is resolved first.
"""

import dns.exception
import dns.resolver

from ip_unban.errors import ReachabilityError
from ip_unban.utils.ip_utils import parse_ip


class TargetResolver:
    """Resolves probe targets through DNS when they are not literal addresses."""

    @staticmethod
    def resolve(target: str, timeout: int = 5) -> str:
        """Return the address to probe for a target.

        Literal addresses are returned in canonical form. Hostnames are
        resolved with an A query, then AAAA if no A record exists.

        Args:
            target: Address or hostname.
            timeout: DNS query timeout in seconds (default: 5).

        Returns:
            str: Address in textual form.

        Raises:
            ReachabilityError: If the hostname does not resolve.

        Example:
            >>> TargetResolver.resolve("::ffff:203.0.113.7")
            '203.0.113.7'
        """
        addr = parse_ip(target)
        if addr is not None:
            return str(addr)

        resolver = dns.resolver.Resolver()
        resolver.timeout = timeout
        resolver.lifetime = timeout

        for rdtype in ("A", "AAAA"):
            try:
                answers = resolver.resolve(target, rdtype)
            except dns.resolver.NXDOMAIN as e:
                raise ReachabilityError(f"cannot resolve {target}: NXDOMAIN") from e
            except dns.resolver.NoAnswer:
                continue
            except dns.exception.DNSException as e:
                raise ReachabilityError(f"cannot resolve {target}: {e}") from e
            if len(answers) > 0:
                return str(answers[0])

        raise ReachabilityError(f"cannot resolve {target}: no A or AAAA records")
