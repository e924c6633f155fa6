"""MikroTik RouterOS client for the IPsec peer and policy."""

import logging
from typing import Optional

import requests

from ip_unban.config import RouterConfig
from ip_unban.errors import ReconfigurationError


logger = logging.getLogger(__name__)


def host_prefix(address: str) -> str:
    """Single-host prefix as RouterOS stores peer addresses."""
    return f"{address}/128" if ":" in address else f"{address}/32"


class RouterOSClient:
    """Rewrites the router's IPsec peer and policy through the REST API.

    Peers are matched on ``address=<old>/32`` and policies on
    ``sa-dst-address=<old>``; every match is updated.
    """

    def __init__(self, config: RouterConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create configured requests session"""
        session = requests.Session()
        session.auth = (self.config.username, self.config.password)
        session.verify = self.config.verify_tls
        session.headers["Content-Type"] = "application/json"
        return session

    def _api_request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
    ):
        """Make API request to RouterOS"""
        url = f"{self.config.base_url}{path}"
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            return response.json() if response.content else None
        except (requests.RequestException, ValueError) as e:
            logger.error(f"RouterOS API request {method} {path} failed: {e}")
            raise ReconfigurationError(f"RouterOS {method} {path}: {e}") from e

    def find(self, path: str, **query: str) -> list[dict]:
        """Print entries under ``path`` matching all query attributes."""
        return self._api_request("GET", path, params=query) or []

    def set_entry(self, path: str, entry_id: str, **values: str) -> None:
        self._api_request("PATCH", f"{path}/{entry_id}", json_data=values)

    def _rewrite(self, path: str, attribute: str, old: str, new: str) -> int:
        entries = self.find(path, **{attribute: old})
        for entry in entries:
            self.set_entry(path, entry[".id"], **{attribute: new})
        return len(entries)

    def update_peer(self, old_address: str, new_address: str) -> None:
        """Move IPsec peer and policy entries from the old to the new address.

        Raises:
            ReconfigurationError: If the router rejects a query or update.
        """
        peers = self._rewrite(
            "/ip/ipsec/peer",
            "address",
            host_prefix(old_address),
            host_prefix(new_address),
        )
        policies = self._rewrite(
            "/ip/ipsec/policy", "sa-dst-address", old_address, new_address
        )

        if not peers and not policies:
            logger.warning(
                f"No IPsec peer or policy on router references {old_address}"
            )
        logger.info(
            f"Successfully changed IPsec Peer from [{old_address}] to [{new_address}]",
            extra={"peers_updated": peers, "policies_updated": policies},
        )
