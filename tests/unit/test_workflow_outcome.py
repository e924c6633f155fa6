"""Unit tests for WorkflowOutcome."""

import yaml

from ip_unban.models.workflow_outcome import OutcomeKind, Stage, WorkflowOutcome


def test_exit_codes():
    assert WorkflowOutcome(OutcomeKind.NO_ACTION, Stage.CHECK_CURRENT_ADDRESS).exit_code == 0
    assert WorkflowOutcome(OutcomeKind.DRY_RUN, Stage.CHECK_CURRENT_ADDRESS).exit_code == 0
    assert WorkflowOutcome(OutcomeKind.REMEDIATED, Stage.AWAIT_REACHABILITY).exit_code == 0
    assert WorkflowOutcome(OutcomeKind.FAILED, Stage.FETCH_BLOCKLIST).exit_code == 1


def test_summaries():
    no_action = WorkflowOutcome(
        OutcomeKind.NO_ACTION, Stage.CHECK_CURRENT_ADDRESS, old_address="198.51.100.5"
    )
    remediated = WorkflowOutcome(
        OutcomeKind.REMEDIATED,
        Stage.AWAIT_REACHABILITY,
        old_address="203.0.113.45",
        new_address="198.51.100.20",
    )
    failed = WorkflowOutcome(
        OutcomeKind.FAILED, Stage.ROTATE_ADDRESS, cause="AllocationError: quota"
    )

    assert no_action.summary() == (
        "Current IP [198.51.100.5] is not found in banned IP list"
    )
    assert remediated.summary() == (
        "Replaced banned IP [203.0.113.45] with [198.51.100.20]"
    )
    assert failed.summary() == (
        "Remediation failed at ROTATE_ADDRESS: AllocationError: quota"
    )


def test_inconsistent_downstream():
    """Test mixed state only after the server address already moved."""
    mixed = WorkflowOutcome(
        OutcomeKind.FAILED,
        Stage.RECONFIGURE_DOWNSTREAM,
        cause="ReconfigurationError: x",
        new_address="198.51.100.20",
        completed_steps=["dns"],
    )
    rotation_failed = WorkflowOutcome(
        OutcomeKind.FAILED, Stage.ROTATE_ADDRESS, cause="AllocationError: x"
    )

    assert mixed.inconsistent_downstream is True
    assert rotation_failed.inconsistent_downstream is False
    assert mixed.to_json()["downstream"]["consistent"] is False


def test_yaml_checklist():
    outcome = WorkflowOutcome(
        OutcomeKind.FAILED,
        Stage.RECONFIGURE_DOWNSTREAM,
        cause="ReconfigurationError: x",
        old_address="203.0.113.45",
        new_address="198.51.100.20",
        completed_steps=["dns"],
    )

    checklist = outcome.to_yaml_checklist()

    assert "# Server address moved: 203.0.113.45 -> 198.51.100.20" in checklist
    assert yaml.safe_load(checklist) == {
        "applied": ["dns"],
        "pending": ["router", "remote_host"],
    }


def test_detached_server_is_inconsistent():
    """Test a failed attach is reported as mixed state with the candidate id."""
    outcome = WorkflowOutcome(
        OutcomeKind.FAILED,
        Stage.ROTATE_ADDRESS,
        cause="AddressSwapError: attach failed",
        old_address="203.0.113.45",
        new_address="198.51.100.20",
        new_address_id="ip-new",
        server_detached=True,
    )

    checklist = outcome.to_yaml_checklist()

    assert outcome.inconsistent_downstream is True
    assert outcome.to_json()["new_address_id"] == "ip-new"
    assert outcome.to_json()["rotation"]["server_detached"] is True
    assert "198.51.100.20 (ip-new) is allocated but not attached" in checklist
    assert yaml.safe_load(checklist) == {
        "applied": ["detach"],
        "pending": ["attach", "dns", "router", "remote_host"],
    }
