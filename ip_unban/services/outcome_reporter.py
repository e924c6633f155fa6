"""Formats workflow outcomes for the notification channel."""

import json
from typing import Tuple

from ip_unban.models.workflow_outcome import OutcomeKind, WorkflowOutcome


class OutcomeReporter:
    """Builds notification subject and body from a WorkflowOutcome."""

    @staticmethod
    def generate_json_report(outcome: WorkflowOutcome) -> str:
        """Pretty-printed JSON with sorted keys for determinism."""
        return json.dumps(outcome.to_json(), indent=2, sort_keys=True)

    @staticmethod
    def build_message(outcome: WorkflowOutcome) -> Tuple[str, str]:
        """Build the notification for a run.

        Args:
            outcome: Terminal outcome of the run.

        Returns:
            Tuple[str, str]: (subject, body) in Jira wiki markup.
        """
        subject = f"IP unban {outcome.kind.value}: {outcome.summary()}"

        body = f"*Run finished at:* {outcome.finished_at.isoformat()}\n\n"
        body += "h3. Outcome\n\n"
        body += "{code:json}\n"
        body += OutcomeReporter.generate_json_report(outcome)
        body += "\n{code}\n\n"

        if outcome.inconsistent_downstream:
            body += "h3. Downstream configuration\n\n"
            body += "{code:yaml}\n"
            body += outcome.to_yaml_checklist()
            body += "{code}\n\n"
            if outcome.server_detached:
                body += (
                    "*Action Required:* the server has no public address. "
                    f"Candidate {outcome.new_address} ({outcome.new_address_id}) "
                    "is allocated but not attached. Attach it, then apply the "
                    "pending steps manually.\n"
                )
            else:
                body += (
                    "*Action Required:* the server already uses the new address but "
                    "not every downstream system was updated. Apply the pending "
                    "steps manually.\n"
                )
        elif outcome.kind == OutcomeKind.FAILED:
            body += f"*Action Required:* run stopped at {outcome.stage.value}.\n"

        if outcome.release_failures:
            body += (
                "Candidate addresses still allocated: "
                + ", ".join(sorted(outcome.release_failures))
                + "\n"
            )

        return subject, body
