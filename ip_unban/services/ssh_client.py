"""Remote IPsec host reconfiguration over SSH."""

import logging
import shlex

import paramiko

from ip_unban.config import SSHConfig
from ip_unban.errors import ReconfigurationError


logger = logging.getLogger(__name__)


def build_rewrite_command(
    old_address: str, new_address: str, ipsec_conf: str, reload_command: str
) -> str:
    """Build the command that repoints ``leftsourceip`` and reloads IPsec.

    Running it twice is harmless: the second ``sed`` finds nothing to replace.
    """
    pattern = old_address.replace(".", r"\.")
    expression = f"s/leftsourceip={pattern}/leftsourceip={new_address}/g"
    return (
        f"sed -i {shlex.quote(expression)} {shlex.quote(ipsec_conf)}"
        f" && {reload_command}"
    )


class SSHHostClient:
    """Runs the IPsec rewrite on the server once it answers on its new address."""

    def __init__(self, config: SSHConfig):
        self.config = config

    def connect(self, host: str) -> paramiko.SSHClient:
        """Open a key-authenticated SSH session to host.

        Raises:
            ReconfigurationError: If the key is unreadable or the login fails.
        """
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            client.connect(
                hostname=host,
                port=self.config.port,
                username=self.config.username,
                key_filename=self.config.private_key,
                timeout=self.config.timeout,
                allow_agent=False,
                look_for_keys=False,
            )
        except paramiko.AuthenticationException as e:
            client.close()
            logger.error(f"Authentication failed for {self.config.username}@{host}")
            raise ReconfigurationError(f"SSH authentication to {host} failed") from e
        except (paramiko.SSHException, OSError) as e:
            client.close()
            logger.error(f"SSH error for {host}: {e}")
            raise ReconfigurationError(f"SSH connection to {host} failed: {e}") from e

        return client

    def update_peer(self, old_address: str, new_address: str) -> None:
        """Rewrite ``leftsourceip`` on the host reachable at new_address.

        Raises:
            ReconfigurationError: On connection failure or non-zero exit status.
        """
        command = build_rewrite_command(
            old_address, new_address, self.config.ipsec_conf, self.config.reload_command
        )
        client = self.connect(new_address)
        try:
            _, stdout, stderr = client.exec_command(command, timeout=self.config.timeout)
            exit_status = stdout.channel.recv_exit_status()
            if exit_status != 0:
                error_output = stderr.read().decode(errors="replace").strip()
                raise ReconfigurationError(
                    f"remote command exited with {exit_status}: {error_output}"
                )
        except (paramiko.SSHException, OSError) as e:
            raise ReconfigurationError(f"remote command on {new_address} failed: {e}") from e
        finally:
            client.close()

        logger.info(f"Updated IPsec source address on {new_address} and reloaded IPsec")
