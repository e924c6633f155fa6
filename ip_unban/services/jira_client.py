"""Jira notification channel for remediation outcomes."""

import logging

from jira import JIRA
from jira.exceptions import JIRAError

from ip_unban.config import JiraConfig
from ip_unban.utils.retry import exponential_backoff_retry


logger = logging.getLogger(__name__)


class JiraNotifier:
    """Files each human-readable status message as a Jira issue."""

    def __init__(self, config: JiraConfig, jira: JIRA | None = None):
        """Initialize Jira notifier.

        Args:
            config: Jira connection and project settings.
            jira: Pre-built client (a basic-auth client is created otherwise).
        """
        self.jira = jira or JIRA(
            server=config.server, basic_auth=(config.user, config.api_token)
        )
        self.project = config.project
        self.issue_type = config.issue_type

    @exponential_backoff_retry()
    def send(self, subject: str, message: str) -> str:
        """Create an issue carrying the message.

        Args:
            subject: Issue summary.
            message: Issue description (Jira wiki markup).

        Returns:
            str: Issue key (e.g., "OPS-123").
        """
        issue_dict = {
            "project": {"key": self.project},
            "summary": subject,
            "description": message,
            "issuetype": {"name": self.issue_type},
            "labels": ["ip-unban"],
        }

        try:
            new_issue = self.jira.create_issue(fields=issue_dict)
            logger.info(f"Created Jira issue {new_issue.key}: {subject}")
            return new_issue.key
        except JIRAError as e:
            logger.error(f"Failed to create Jira issue '{subject}': {e}")
            raise
