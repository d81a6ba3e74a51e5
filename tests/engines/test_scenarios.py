"""
End-to-end walks through the approval engines.

Each test drives a document through a realistic sequence of actions and
checks the properties that must hold along the way: no role is ever both
approved and rejected, a fully approved chain has no gaps, and rejection
halts the chain.
"""

from itertools import permutations

import pytest

from erp_engines import (
    approve,
    classify,
    derive_state,
    is_acknowledged_by,
    next_eligible_role,
    pay,
    record_acknowledgment,
    reject,
    resolve_chain,
)
from erp_kernel.domain.approval import (
    ApprovalStateKind,
    Classification,
    Document,
    DocumentStatus,
)
from erp_kernel.exceptions import (
    NotEligibleError,
    PreconditionError,
    TerminalStateError,
)

ALL_ROLES = ("manager", "executive", "finance", "hr", "gmd", "chairman")


def _assert_flags_exclusive(document: Document) -> None:
    for role in ALL_ROLES:
        assert not (document.approved_by(role) and document.rejected_by(role))


class TestIctRequisition:
    """ICT requisition: manager -> executive -> finance -> gmd -> chairman."""

    def test_finance_cannot_skip_executive(self, make_requisition):
        req = make_requisition(department="ICT")
        assert resolve_chain("requisition", "ICT") == (
            "manager", "executive", "finance", "gmd", "chairman",
        )

        req = approve(req, "manager", 11)
        assert next_eligible_role(req) == "executive"

        with pytest.raises(NotEligibleError) as exc_info:
            approve(req, "finance", 12)
        assert exc_info.value.expected_role == "executive"

    def test_full_walk_has_no_gaps(self, make_requisition):
        req = make_requisition(department="ICT")
        chain = resolve_chain("requisition", "ICT")
        for user_id, role in enumerate(chain, start=1):
            assert next_eligible_role(req) == role
            req = approve(req, role, user_id)
            _assert_flags_exclusive(req)

        assert derive_state(req).kind is ApprovalStateKind.FULLY_APPROVED
        assert all(req.approved_by(role) for role in chain)
        assert req.status is DocumentStatus.APPROVED
        with pytest.raises(TerminalStateError):
            reject(req, "chairman", 5)


class TestNonIctMemo:
    """Finance-department memo: finance -> gmd -> chairman, then payment."""

    def test_approved_for_everyone_then_completed_after_payment(self, make_memo):
        memo = make_memo(department="Finance", created_by=100)
        for user_id, role in ((1, "finance"), (2, "gmd"), (3, "chairman")):
            memo = approve(memo, role, user_id)

        for viewer, role in ((100, "staff"), (1, "finance"), (2, "gmd"), (3, "chairman"), (4, "hr")):
            assert classify(memo, viewer, role) is Classification.APPROVED

        memo = pay(memo, 1, acting_role="finance")
        assert memo.status is DocumentStatus.COMPLETED
        for viewer, role in ((100, "staff"), (1, "finance"), (4, "hr")):
            assert classify(memo, viewer, role) is Classification.COMPLETED

        with pytest.raises(PreconditionError):
            pay(memo, 1)

    def test_pay_before_full_approval(self, make_memo):
        memo = approve(make_memo(), "finance", 1)
        with pytest.raises(PreconditionError):
            pay(memo, 1)


class TestLeaveRejection:
    """Leave: the executive, arriving as 'ict_executive', rejects."""

    def test_rejection_is_terminal(self, make_leave):
        leave = make_leave()
        leave = approve(leave, "manager", 21)
        leave = reject(leave, "ict_executive", 22)

        assert leave.status is DocumentStatus.REJECTED
        assert leave.rejected_by("executive")
        assert next_eligible_role(leave) is None
        _assert_flags_exclusive(leave)

        with pytest.raises(TerminalStateError):
            approve(leave, "gmd", 23)


class TestReportMemoAcknowledgment:

    def test_acknowledgment_membership(self, make_memo, clock):
        memo = make_memo(memo_type="report", recipients=(5, 9))
        memo = record_acknowledgment(memo, 5, "hr", "HR", clock=clock)
        assert is_acknowledged_by(memo, 5)
        assert not is_acknowledged_by(memo, 9)

    def test_double_acknowledgment_keeps_one_entry(self, make_memo, clock):
        memo = make_memo(memo_type="report", recipients=(5, 9))
        memo = record_acknowledgment(memo, 5, "hr", "HR", clock=clock)
        memo = record_acknowledgment(memo, 5, "hr", "HR", clock=clock)
        assert sum(1 for ack in memo.acknowledgments if ack.is_by(5)) == 1


class TestArbitraryActionOrders:
    """Whatever order approvers try to act in, only valid steps land."""

    @pytest.mark.parametrize("order", list(permutations(("finance", "gmd", "chairman"))))
    def test_attempts_in_any_order(self, make_memo, order):
        memo = make_memo()
        for _ in range(3):
            for role in order:
                try:
                    memo = approve(memo, role, 1)
                except (NotEligibleError, TerminalStateError):
                    continue
                _assert_flags_exclusive(memo)

        assert derive_state(memo).kind is ApprovalStateKind.FULLY_APPROVED
        assert memo.status is DocumentStatus.APPROVED
