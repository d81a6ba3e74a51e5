"""
Tests for the report-memo acknowledgment tracker.
"""

import pytest

from erp_engines.acknowledgment import (
    acknowledged_ids,
    is_acknowledged_by,
    pending_recipients,
    record_acknowledgment,
)
from erp_kernel.exceptions import PreconditionError


@pytest.fixture
def report(make_memo):
    return make_memo(
        memo_type="report",
        recipients=(5, 9),
        pending_acknowledgers=("hr", "ict_executive"),
    )


class TestRecordAcknowledgment:

    def test_appends_entry_with_clock_time(self, report, clock):
        updated = record_acknowledgment(report, 5, "HR", "Human Resources", clock=clock, name="Ada")
        assert len(updated.acknowledgments) == 1
        ack = updated.acknowledgments[0]
        assert ack.acknowledger_id == 5
        assert ack.role == "HR"
        assert ack.department == "Human Resources"
        assert ack.name == "Ada"
        assert ack.timestamp == clock.now()

    def test_removes_matching_pending_role(self, report, clock):
        updated = record_acknowledgment(report, 9, "executive", "ICT", clock=clock)
        # "ict_executive" and "executive" normalize to the same position
        assert updated.pending_acknowledgers == ("hr",)

    def test_unmatched_role_leaves_pending_untouched(self, report, clock):
        updated = record_acknowledgment(report, 9, "gmd", "Management", clock=clock)
        assert updated.pending_acknowledgers == ("hr", "ict_executive")

    def test_idempotent_per_user(self, report, clock):
        once = record_acknowledgment(report, 5, "hr", "HR", clock=clock)
        clock.advance(60)
        twice = record_acknowledgment(once, "5", "hr", "HR", clock=clock)
        assert twice is once
        assert acknowledged_ids(twice) == (5,)

    def test_creator_cannot_acknowledge(self, report, clock):
        with pytest.raises(PreconditionError) as exc_info:
            record_acknowledgment(report, 100, "hr", "HR", clock=clock)
        assert "creator" in exc_info.value.reason

    def test_only_memos(self, make_leave, clock):
        with pytest.raises(PreconditionError):
            record_acknowledgment(make_leave(), 5, "hr", "HR", clock=clock)

    def test_input_is_not_mutated(self, report, clock):
        record_acknowledgment(report, 5, "hr", "HR", clock=clock)
        assert report.acknowledgments == ()


class TestQueries:

    def test_membership_and_pending_recipients(self, report, clock):
        updated = record_acknowledgment(report, 5, "hr", "HR", clock=clock)
        assert is_acknowledged_by(updated, 5)
        assert is_acknowledged_by(updated, "5")
        assert not is_acknowledged_by(updated, 9)
        assert pending_recipients(updated) == (9,)

    def test_acknowledged_ids_in_order(self, report, clock):
        memo = record_acknowledgment(report, 9, "gmd", "Mgmt", clock=clock)
        memo = record_acknowledgment(memo, 5, "hr", "HR", clock=clock)
        assert acknowledged_ids(memo) == (9, 5)
        assert pending_recipients(memo) == ()
