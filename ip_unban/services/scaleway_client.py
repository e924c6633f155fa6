"""Scaleway Instance API client (flexible IP lifecycle)."""

import logging
from typing import Optional

import requests

from ip_unban.config import ScalewayConfig
from ip_unban.errors import AllocationError
from ip_unban.models.address import AddressCandidate, AddressRecord


logger = logging.getLogger(__name__)


class ScalewayClient:
    """Address allocator backed by Scaleway flexible IPs."""

    PER_PAGE = 100

    def __init__(self, config: ScalewayConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create configured requests session"""
        session = requests.Session()
        session.headers.update(
            {
                "X-Auth-Token": self.config.secret_key,
                "Content-Type": "application/json",
            }
        )
        return session

    @property
    def _ips_url(self) -> str:
        return f"{self.config.api_url}/instance/v1/zones/{self.config.zone}/ips"

    def _api_request(
        self,
        method: str,
        url: str,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
    ) -> dict:
        """Make API request to Scaleway.

        Raises:
            AllocationError: On transport errors or non-2xx responses.
        """
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Scaleway API request failed: {e}")
            raise AllocationError(f"Scaleway {method} {url}: {e}") from e

        if not response.ok:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            logger.error(f"Scaleway API error {response.status_code}: {message}")
            raise AllocationError(
                f"Scaleway {method} {url}: HTTP {response.status_code}: {message}"
            )

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    @staticmethod
    def _to_record(ip: dict) -> AddressRecord:
        server = ip.get("server") or {}
        return AddressRecord(
            id=ip["id"],
            address=ip["address"],
            server_id=server.get("id"),
            server_name=server.get("name"),
        )

    def list_server_addresses(self) -> list[AddressRecord]:
        """List all flexible IPs of the project in the configured zone."""
        records = []
        page = 1
        while True:
            data = self._api_request(
                "GET",
                self._ips_url,
                params={
                    "project": self.config.project_id,
                    "page": page,
                    "per_page": self.PER_PAGE,
                },
            )
            ips = data.get("ips", [])
            records.extend(self._to_record(ip) for ip in ips)
            if len(ips) < self.PER_PAGE:
                return records
            page += 1

    def allocate_address(self) -> AddressCandidate:
        """Reserve a new flexible IP."""
        data = self._api_request(
            "POST", self._ips_url, json_data={"project": self.config.project_id}
        )
        ip = data.get("ip")
        if not ip:
            raise AllocationError("Scaleway returned no IP for allocation request")
        logger.debug(f"Allocated flexible IP {ip['address']} ({ip['id']})")
        return AddressCandidate(id=ip["id"], address=ip["address"])

    def release_address(self, address_id: str) -> None:
        self._api_request("DELETE", f"{self._ips_url}/{address_id}")

    def detach(self, address_id: str) -> None:
        self._api_request("PATCH", f"{self._ips_url}/{address_id}", json_data={"server": None})

    def attach(self, address_id: str, server_id: str) -> None:
        self._api_request(
            "PATCH", f"{self._ips_url}/{address_id}", json_data={"server": server_id}
        )
