"""
Cloudflare DNS client

Uses Cloudflare API v4 to repoint a single record to the new address.
"""

import logging
from typing import Optional

import requests

from ip_unban.config import CloudflareConfig
from ip_unban.errors import ReconfigurationError


logger = logging.getLogger(__name__)


class CloudflareClient:
    """DNS updater scoped to one zone and one record name."""

    def __init__(self, config: CloudflareConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create configured requests session"""
        session = requests.Session()
        if self.config.api_token:
            session.headers["Authorization"] = f"Bearer {self.config.api_token}"
        else:
            session.headers.update(
                {"X-Auth-Email": self.config.email, "X-Auth-Key": self.config.api_key}
            )
        session.headers["Content-Type"] = "application/json"
        return session

    def _api_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
    ) -> dict:
        """Make API request to Cloudflare"""
        url = f"{self.config.api_base}{endpoint}"

        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.config.timeout,
            )
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Cloudflare API request failed: {e}")
            raise ReconfigurationError(f"Cloudflare request failed: {e}") from e

        if not data.get("success", False):
            errors = data.get("errors", [])
            error_msg = "; ".join(e.get("message", str(e)) for e in errors)
            logger.error(f"Cloudflare API error: {error_msg}")
            raise ReconfigurationError(f"Cloudflare API error: {error_msg}")

        return data

    def list_zones(self) -> list[dict]:
        return self._api_request("GET", "/zones", params={"name": self.config.zone})[
            "result"
        ]

    def list_records(self, zone_id: str) -> list[dict]:
        return self._api_request(
            "GET", f"/zones/{zone_id}/dns_records", params={"name": self.config.domain}
        )["result"]

    def patch_record(self, zone_id: str, record_id: str, content: str) -> None:
        self._api_request(
            "PATCH",
            f"/zones/{zone_id}/dns_records/{record_id}",
            json_data={"content": content},
        )

    def update_record(self, address: str) -> None:
        """Point every record named ``domain`` in ``zone`` at the address.

        Raises:
            ReconfigurationError: If the zone or record is missing or the API
                rejects the change.
        """
        zones = [z for z in self.list_zones() if z.get("name") == self.config.zone]
        if not zones:
            raise ReconfigurationError(f"DNS zone {self.config.zone} was not found")

        record_type = "AAAA" if ":" in address else "A"
        updated = 0
        for zone in zones:
            for record in self.list_records(zone["id"]):
                if (
                    record.get("name") != self.config.domain
                    or record.get("type") != record_type
                ):
                    continue
                self.patch_record(zone["id"], record["id"], address)
                updated += 1

        if not updated:
            raise ReconfigurationError(
                f"DNS record {self.config.domain} was not found in zone {self.config.zone}"
            )
        logger.info(
            f"Successfully updated DNS record for domain [{self.config.domain}] with IP: {address}"
        )
