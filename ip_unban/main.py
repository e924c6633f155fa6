"""Main entry point for ip-unban."""

import functools
import logging
import signal
import sys
import threading

from ip_unban.config import Config
from ip_unban.services.blocklist_fetcher import fetch_blocklist
from ip_unban.services.cloudflare_client import CloudflareClient
from ip_unban.services.interfaces import NullNotifier
from ip_unban.services.jira_client import JiraNotifier
from ip_unban.services.logger import setup_logging
from ip_unban.services.reachability_probe import IcmpEchoProbe
from ip_unban.services.reachability_waiter import ReachabilityWaiter
from ip_unban.services.router_client import RouterOSClient
from ip_unban.services.scaleway_client import ScalewayClient
from ip_unban.services.ssh_client import SSHHostClient
from ip_unban.services.workflow import RemediationWorkflow


logger = logging.getLogger(__name__)


def install_signal_handlers(cancel_event: threading.Event) -> None:
    """Turn the first SIGTERM or SIGINT into a cancellation of the run.

    The run stops between allocations, at the next stage boundary, or out of
    the reachability wait, and still reports its outcome. Default handling
    is restored, so a second signal terminates the process immediately.
    """

    def handle(signum, frame):
        logger.warning(f"Received signal {signum}, cancelling run")
        cancel_event.set()
        signal.signal(signal.SIGTERM, signal.SIG_DFL)
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGTERM, handle)
    signal.signal(signal.SIGINT, handle)


def build_workflow(config: Config, cancel_event: threading.Event) -> RemediationWorkflow:
    """Wire concrete collaborators from configuration.

    Args:
        config: Application configuration.
        cancel_event: Event that cancels the run.

    Returns:
        RemediationWorkflow: Ready-to-run workflow.
    """
    notifier = JiraNotifier(config.jira) if config.jira else NullNotifier()

    waiter = ReachabilityWaiter(
        IcmpEchoProbe(timeout=config.probe.timeout),
        interval=config.probe.interval,
        deadline=config.probe.deadline,
        cancel_event=cancel_event,
    )

    return RemediationWorkflow(
        fetch_blocklist=functools.partial(
            fetch_blocklist,
            config.blocklist_url,
            timeout=config.blocklist_timeout,
            delimiter=config.blocklist_delimiter,
            encoding=config.blocklist_encoding,
        ),
        allocator=ScalewayClient(config.scaleway),
        dns=CloudflareClient(config.cloudflare),
        router=RouterOSClient(config.router),
        remote_host=SSHHostClient(config.ssh),
        waiter=waiter,
        server_name=config.scaleway.server_name,
        probe_target=config.probe.target,
        rotation_max_attempts=config.rotation_max_attempts,
        dry_run=config.dry_run,
        notifier=notifier,
        cancel_event=cancel_event,
    )


def main() -> int:
    """Main execution function.

    Returns:
        int: Exit code (0 for not blocked, remediated or dry run; 1 otherwise).
    """
    setup_logging()
    logger.info("Starting ip-unban")

    try:
        config = Config.from_env()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    setup_logging(verbose=config.verbose)
    if config.dry_run:
        logger.info("DRY_RUN mode enabled - no address, DNS, router or host changes will occur")

    cancel_event = threading.Event()
    install_signal_handlers(cancel_event)

    try:
        workflow = build_workflow(config, cancel_event)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    outcome = workflow.run()
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
