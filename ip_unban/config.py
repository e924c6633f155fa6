"""Configuration module for ip-unban.

Loads and validates environment variables. Each collaborator receives only
its own section.
"""

import os
from dataclasses import dataclass
from typing import Optional


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass
class ScalewayConfig:
    """Scaleway Instance API settings (address allocator)."""

    secret_key: str
    project_id: str
    server_name: str
    zone: str = "nl-ams-1"
    api_url: str = "https://api.scaleway.com"
    timeout: int = 30


@dataclass
class CloudflareConfig:
    """Cloudflare DNS settings.

    Either ``api_token`` or the legacy ``email`` + ``api_key`` pair is set.
    """

    zone: str
    domain: str
    api_token: str = ""
    email: str = ""
    api_key: str = ""
    api_base: str = "https://api.cloudflare.com/client/v4"
    timeout: int = 30


@dataclass
class RouterConfig:
    """MikroTik RouterOS REST API settings."""

    address: str
    username: str
    password: str
    port: int = 443
    scheme: str = "https"
    verify_tls: bool = True
    timeout: int = 30

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.address}:{self.port}/rest"


@dataclass
class SSHConfig:
    """Remote IPsec host settings."""

    username: str
    private_key: str
    port: int = 22
    ipsec_conf: str = "/etc/ipsec.conf"
    reload_command: str = "ipsec restart"
    timeout: int = 30


@dataclass
class ProbeConfig:
    """Reachability verification settings."""

    target: Optional[str] = None
    interval: float = 1.0
    deadline: float = 15.0
    timeout: float = 1.0


@dataclass
class JiraConfig:
    """Jira settings for the notification channel."""

    server: str
    user: str
    api_token: str
    project: str
    issue_type: str


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Blocklist feed
    blocklist_url: str
    blocklist_delimiter: str
    blocklist_encoding: str
    blocklist_timeout: int

    # Collaborators
    scaleway: ScalewayConfig
    cloudflare: CloudflareConfig
    router: RouterConfig
    ssh: SSHConfig
    probe: ProbeConfig
    jira: Optional[JiraConfig]

    # Rotation
    rotation_max_attempts: Optional[int]

    # Operational Configuration
    dry_run: bool
    verbose: bool

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ValueError: If required variables are missing or invalid.

        Returns:
            Config: Validated configuration instance.
        """
        # Blocklist feed
        blocklist_url = cls._get_required_env("BLOCKLIST_URL")
        if not blocklist_url.startswith(("http://", "https://")):
            raise ValueError("BLOCKLIST_URL must be an HTTP or HTTPS URL")

        blocklist_delimiter = os.getenv("BLOCKLIST_DELIMITER", ";")
        if len(blocklist_delimiter) != 1 or blocklist_delimiter == "|":
            raise ValueError(
                "BLOCKLIST_DELIMITER must be a single character other than '|'"
            )

        blocklist_encoding = os.getenv("BLOCKLIST_ENCODING", "cp1251")

        blocklist_timeout = int(os.getenv("BLOCKLIST_TIMEOUT", "30"))
        if not 1 <= blocklist_timeout <= 300:
            raise ValueError("BLOCKLIST_TIMEOUT must be between 1 and 300 seconds")

        # Scaleway
        scaleway = ScalewayConfig(
            secret_key=cls._get_required_env("SCW_SECRET_KEY"),
            project_id=cls._get_required_env("SCW_PROJECT_ID"),
            server_name=cls._get_required_env("SCW_SERVER_NAME"),
            zone=os.getenv("SCW_ZONE", "nl-ams-1"),
            api_url=os.getenv("SCW_API_URL", "https://api.scaleway.com"),
        )

        # Cloudflare
        cloudflare = CloudflareConfig(
            zone=cls._get_required_env("CLOUDFLARE_ZONE"),
            domain=cls._get_required_env("CLOUDFLARE_DOMAIN"),
            api_token=os.getenv("CF_API_TOKEN", ""),
            email=os.getenv("CLOUDFLARE_EMAIL", ""),
            api_key=os.getenv("CLOUDFLARE_KEY", ""),
        )
        if not cloudflare.api_token and not (cloudflare.email and cloudflare.api_key):
            raise ValueError(
                "Either CF_API_TOKEN or CLOUDFLARE_EMAIL and CLOUDFLARE_KEY must be set"
            )

        # RouterOS
        ros_scheme = os.getenv("ROS_SCHEME", "https").lower()
        if ros_scheme not in ("http", "https"):
            raise ValueError("ROS_SCHEME must be http or https")
        router = RouterConfig(
            address=cls._get_required_env("ROS_ADDRESS"),
            username=cls._get_required_env("ROS_USERNAME"),
            password=cls._get_required_env("ROS_PASSWORD"),
            port=int(os.getenv("ROS_PORT", "443")),
            scheme=ros_scheme,
            verify_tls=_parse_bool(os.getenv("ROS_VERIFY_TLS", "true")),
        )

        # Remote host
        ssh = SSHConfig(
            username=cls._get_required_env("SSH_USERNAME"),
            private_key=cls._get_required_env("SSH_PRIVATE_KEY"),
            port=int(os.getenv("SSH_PORT", "22")),
            ipsec_conf=os.getenv("SSH_IPSEC_CONF", "/etc/ipsec.conf"),
            reload_command=os.getenv("SSH_RELOAD_COMMAND", "ipsec restart"),
        )

        # Reachability
        probe = ProbeConfig(
            target=os.getenv("REACHABILITY_TARGET") or None,
            interval=float(os.getenv("PROBE_INTERVAL", "1")),
            deadline=float(os.getenv("PROBE_DEADLINE", "15")),
            timeout=float(os.getenv("PROBE_TIMEOUT", "1")),
        )
        if probe.interval <= 0:
            raise ValueError("PROBE_INTERVAL must be positive")
        if probe.deadline < probe.interval:
            raise ValueError(
                f"PROBE_DEADLINE ({probe.deadline:g}) must be >= PROBE_INTERVAL ({probe.interval:g})"
            )
        if probe.timeout <= 0:
            raise ValueError("PROBE_TIMEOUT must be positive")

        # Rotation bound (unset keeps the unbounded loop)
        max_attempts_str = os.getenv("ROTATION_MAX_ATTEMPTS", "")
        rotation_max_attempts = int(max_attempts_str) if max_attempts_str else None
        if rotation_max_attempts is not None and rotation_max_attempts < 1:
            raise ValueError("ROTATION_MAX_ATTEMPTS must be >= 1")

        jira = cls._load_jira()

        # Operational Configuration
        dry_run = _parse_bool(os.getenv("DRY_RUN", "false"))
        verbose = _parse_bool(os.getenv("VERBOSE", "false"))

        return cls(
            blocklist_url=blocklist_url,
            blocklist_delimiter=blocklist_delimiter,
            blocklist_encoding=blocklist_encoding,
            blocklist_timeout=blocklist_timeout,
            scaleway=scaleway,
            cloudflare=cloudflare,
            router=router,
            ssh=ssh,
            probe=probe,
            jira=jira,
            rotation_max_attempts=rotation_max_attempts,
            dry_run=dry_run,
            verbose=verbose,
        )

    @classmethod
    def _load_jira(cls) -> Optional[JiraConfig]:
        """Load Jira settings; notification is disabled if JIRA_SERVER is unset.

        Raises:
            ValueError: If Jira is partially configured or not HTTPS.
        """
        jira_server = os.getenv("JIRA_SERVER")
        if not jira_server:
            return None
        if not jira_server.startswith("https://"):
            raise ValueError("JIRA_SERVER must be an HTTPS URL")

        return JiraConfig(
            server=jira_server,
            user=cls._get_required_env("JIRA_USER"),
            api_token=cls._get_required_env("JIRA_API_TOKEN"),
            project=cls._get_required_env("JIRA_PROJECT"),
            issue_type=os.getenv("JIRA_ISSUE_TYPE", "Incident"),
        )

    @staticmethod
    def _get_required_env(key: str) -> str:
        """Get required environment variable or raise ValueError.

        Args:
            key: Environment variable name.

        Returns:
            str: Environment variable value.

        Raises:
            ValueError: If environment variable is not set or empty.
        """
        value = os.getenv(key)
        if not value:
            raise ValueError(f"Required environment variable {key} is not set")
        return value
