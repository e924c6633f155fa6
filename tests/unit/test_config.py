"""Unit tests for configuration validation."""

import os
import pytest

from ip_unban.config import Config


REQUIRED_ENV = {
    "BLOCKLIST_URL": "https://feed.example.org/dump.csv",
    "SCW_SECRET_KEY": "scw-secret",
    "SCW_PROJECT_ID": "project-1",
    "SCW_SERVER_NAME": "vpn-gw",
    "CLOUDFLARE_ZONE": "example.org",
    "CLOUDFLARE_DOMAIN": "vpn.example.org",
    "CF_API_TOKEN": "cf-token",
    "ROS_ADDRESS": "192.0.2.1",
    "ROS_USERNAME": "admin",
    "ROS_PASSWORD": "secret",
    "SSH_USERNAME": "root",
    "SSH_PRIVATE_KEY": "/keys/id_ed25519",
}

OPTIONAL_PREFIXES = (
    "BLOCKLIST_",
    "SCW_",
    "CF_",
    "CLOUDFLARE_",
    "ROS_",
    "SSH_",
    "PROBE_",
    "JIRA_",
)
OPTIONAL_KEYS = ("REACHABILITY_TARGET", "ROTATION_MAX_ATTEMPTS", "DRY_RUN", "VERBOSE")


@pytest.fixture
def base_env(monkeypatch):
    """Environment with exactly the required variables set."""
    for key in list(os.environ.keys()):
        if key.startswith(OPTIONAL_PREFIXES) or key in OPTIONAL_KEYS:
            monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


def test_config_from_env_valid(base_env):
    """Test loading valid configuration with defaults."""
    config = Config.from_env()

    assert config.blocklist_url == "https://feed.example.org/dump.csv"
    assert config.blocklist_delimiter == ";"  # Default
    assert config.blocklist_encoding == "cp1251"  # Default
    assert config.blocklist_timeout == 30  # Default
    assert config.scaleway.server_name == "vpn-gw"
    assert config.scaleway.zone == "nl-ams-1"  # Default
    assert config.cloudflare.api_token == "cf-token"
    assert config.router.base_url == "https://192.0.2.1:443/rest"
    assert config.router.verify_tls is True
    assert config.ssh.port == 22
    assert config.probe.target is None
    assert config.probe.interval == 1.0
    assert config.probe.deadline == 15.0
    assert config.rotation_max_attempts is None  # Unbounded
    assert config.jira is None
    assert config.dry_run is False
    assert config.verbose is False


def test_config_missing_required_var(base_env):
    """Test that missing required variable raises ValueError."""
    base_env.delenv("SCW_SERVER_NAME")

    with pytest.raises(
        ValueError, match="Required environment variable SCW_SERVER_NAME is not set"
    ):
        Config.from_env()


def test_config_invalid_blocklist_url(base_env):
    base_env.setenv("BLOCKLIST_URL", "ftp://feed.example.org/dump.csv")

    with pytest.raises(ValueError, match="BLOCKLIST_URL must be an HTTP or HTTPS URL"):
        Config.from_env()


@pytest.mark.parametrize("delimiter", ["|", ";;", ""])
def test_config_invalid_delimiter(base_env, delimiter):
    base_env.setenv("BLOCKLIST_DELIMITER", delimiter)

    with pytest.raises(ValueError, match="BLOCKLIST_DELIMITER"):
        Config.from_env()


def test_config_blocklist_timeout_validation(base_env):
    base_env.setenv("BLOCKLIST_TIMEOUT", "0")

    with pytest.raises(ValueError, match="BLOCKLIST_TIMEOUT must be between 1 and 300"):
        Config.from_env()


def test_config_cloudflare_legacy_credentials(base_env):
    """Test that email and key can replace the API token."""
    base_env.delenv("CF_API_TOKEN")
    base_env.setenv("CLOUDFLARE_EMAIL", "ops@example.org")
    base_env.setenv("CLOUDFLARE_KEY", "legacy-key")

    config = Config.from_env()

    assert config.cloudflare.api_token == ""
    assert config.cloudflare.email == "ops@example.org"
    assert config.cloudflare.api_key == "legacy-key"


def test_config_cloudflare_credentials_required(base_env):
    base_env.delenv("CF_API_TOKEN")
    base_env.setenv("CLOUDFLARE_EMAIL", "ops@example.org")

    with pytest.raises(ValueError, match="Either CF_API_TOKEN or CLOUDFLARE_EMAIL"):
        Config.from_env()


def test_config_router_scheme_validation(base_env):
    base_env.setenv("ROS_SCHEME", "ftp")

    with pytest.raises(ValueError, match="ROS_SCHEME must be http or https"):
        Config.from_env()


def test_config_router_overrides(base_env):
    base_env.setenv("ROS_SCHEME", "HTTP")
    base_env.setenv("ROS_PORT", "8080")
    base_env.setenv("ROS_VERIFY_TLS", "false")

    config = Config.from_env()

    assert config.router.base_url == "http://192.0.2.1:8080/rest"
    assert config.router.verify_tls is False


def test_config_probe_deadline_below_interval(base_env):
    """Test that a deadline shorter than one interval is rejected."""
    base_env.setenv("PROBE_INTERVAL", "5")
    base_env.setenv("PROBE_DEADLINE", "2")

    with pytest.raises(
        ValueError, match=r"PROBE_DEADLINE \(2\) must be >= PROBE_INTERVAL \(5\)"
    ):
        Config.from_env()


def test_config_probe_interval_must_be_positive(base_env):
    base_env.setenv("PROBE_INTERVAL", "0")

    with pytest.raises(ValueError, match="PROBE_INTERVAL must be positive"):
        Config.from_env()


def test_config_probe_target_override(base_env):
    base_env.setenv("REACHABILITY_TARGET", "vpn.example.org")
    base_env.setenv("PROBE_DEADLINE", "30")

    config = Config.from_env()

    assert config.probe.target == "vpn.example.org"
    assert config.probe.deadline == 30.0


def test_config_rotation_max_attempts(base_env):
    base_env.setenv("ROTATION_MAX_ATTEMPTS", "5")

    assert Config.from_env().rotation_max_attempts == 5


def test_config_rotation_max_attempts_validation(base_env):
    base_env.setenv("ROTATION_MAX_ATTEMPTS", "0")

    with pytest.raises(ValueError, match="ROTATION_MAX_ATTEMPTS must be >= 1"):
        Config.from_env()


def test_config_jira_enabled(base_env):
    base_env.setenv("JIRA_SERVER", "https://test.atlassian.net")
    base_env.setenv("JIRA_USER", "test@example.com")
    base_env.setenv("JIRA_API_TOKEN", "test_token")
    base_env.setenv("JIRA_PROJECT", "OPS")

    config = Config.from_env()

    assert config.jira.server == "https://test.atlassian.net"
    assert config.jira.project == "OPS"
    assert config.jira.issue_type == "Incident"  # Default


def test_config_invalid_jira_server(base_env):
    """Test that non-HTTPS Jira server raises ValueError."""
    base_env.setenv("JIRA_SERVER", "http://test.atlassian.net")

    with pytest.raises(ValueError, match="JIRA_SERVER must be an HTTPS URL"):
        Config.from_env()


def test_config_partial_jira(base_env):
    base_env.setenv("JIRA_SERVER", "https://test.atlassian.net")

    with pytest.raises(
        ValueError, match="Required environment variable JIRA_USER is not set"
    ):
        Config.from_env()


def test_config_dry_run_parsing(base_env):
    """Test DRY_RUN boolean parsing."""
    for value in ["true", "True", "1", "yes"]:
        base_env.setenv("DRY_RUN", value)
        assert Config.from_env().dry_run is True

    for value in ["false", "0", "no"]:
        base_env.setenv("DRY_RUN", value)
        assert Config.from_env().dry_run is False
