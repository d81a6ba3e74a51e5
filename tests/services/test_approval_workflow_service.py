"""
Tests for ApprovalWorkflowService against an in-memory backend.
"""

import json
import logging
from io import StringIO

import pytest

from erp_kernel.domain.approval import Classification, DocumentStatus, DocumentType
from erp_kernel.exceptions import (
    NotEligibleError,
    PreconditionError,
    TerminalStateError,
)
from erp_kernel.logging_config import StructuredFormatter, configure_logging
from erp_services.approval_workflow import ApprovalWorkflowService


class FakeGateway:
    """Stands in for DocumentGateway; applies actions to stored records."""

    def __init__(self, records=None):
        self.records = {doc_type: {} for doc_type in DocumentType}
        for doc_type, raw in records or ():
            self.records[DocumentType.parse(doc_type)][raw["id"]] = dict(raw)
        self.sent = []
        self.drop_next_send = False

    def fetch(self, document_type, document_id):
        return dict(self.records[DocumentType.parse(document_type)][document_id])

    def list_for_user(self, document_type, user_id, role=None, status=None):
        return [dict(r) for r in self.records[DocumentType.parse(document_type)].values()]

    def _apply(self, doc_type, document_id, changes):
        if self.drop_next_send:
            self.drop_next_send = False
            return
        self.records[DocumentType.parse(doc_type)][document_id].update(changes)

    def send_approve(self, document_type, document_id, user_id, role, department=None):
        self.sent.append(("approve", document_id, user_id, role, department))
        self._apply(document_type, document_id, {f"approved_by_{role.lower()}": 1})

    def send_reject(self, document_type, document_id, user_id, role=None):
        self.sent.append(("reject", document_id, user_id, role))
        self._apply(
            document_type, document_id,
            {f"rejected_by_{role.lower()}": 1, "status": "rejected"},
        )

    def send_pay(self, document_id, user_id, role=None):
        self.sent.append(("pay", document_id, user_id, role))
        self._apply("memo", document_id, {"paid_by_finance": 1, "status": "completed"})

    def send_acknowledgment(self, document_id, user_id):
        self.sent.append(("acknowledge", document_id, user_id))
        record = self.records[DocumentType.MEMO][document_id]
        acks = json.loads(record.get("acknowledgments") or "[]")
        acks.append({"id": user_id, "timestamp": "2024-01-01T12:00:00Z"})
        record["acknowledgments"] = json.dumps(acks)


def _memo(id=1, **fields):
    raw = {"id": id, "created_by": 100, "department": "Finance", "status": "pending"}
    raw.update(fields)
    return ("memo", raw)


@pytest.fixture
def log_stream():
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler)
    return stream


def _logs(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestApprove:

    def test_approve_sends_and_returns_refetched_document(self, log_stream):
        gateway = FakeGateway([_memo()])
        service = ApprovalWorkflowService(gateway)

        memo = service.approve("memo", 1, user_id=7, role="Finance")

        assert memo.approved_by("finance")
        assert gateway.sent == [("approve", 1, 7, "Finance", None)]
        transition = next(r for r in _logs(log_stream) if r["message"] == "approval_transition")
        assert transition["action"] == "approve"
        assert transition["acting_role"] == "finance"
        assert transition["from_progress"] == "pending_finance"
        assert transition["to_progress"] == "pending_gmd"
        assert transition["field_deltas"] == {"approved_by_finance": 1}
        assert transition["document_id"] == "1"
        assert transition["actor_id"] == "7"
        assert transition["document_type"] == "memo"

    def test_ineligible_action_sends_nothing(self):
        gateway = FakeGateway([_memo()])
        service = ApprovalWorkflowService(gateway)

        with pytest.raises(NotEligibleError):
            service.approve("memo", 1, user_id=7, role="gmd")
        assert gateway.sent == []

    def test_terminal_document_sends_nothing(self):
        gateway = FakeGateway([_memo(rejected_by_finance=1, status="rejected")])
        service = ApprovalWorkflowService(gateway)

        with pytest.raises(TerminalStateError):
            service.reject("memo", 1, user_id=7, role="finance")
        assert gateway.sent == []

    def test_department_is_forwarded(self):
        gateway = FakeGateway([("requisition", {"id": 5, "created_by": 1, "department": "ICT"})])
        service = ApprovalWorkflowService(gateway)

        req = service.approve("requisition", 5, user_id=2, role="manager", department="ICT")

        assert req.approved_by("manager")
        assert gateway.sent[0][-1] == "ICT"

    def test_backend_disagreement_is_logged_and_backend_wins(self, log_stream):
        gateway = FakeGateway([_memo()])
        gateway.drop_next_send = True
        service = ApprovalWorkflowService(gateway)

        memo = service.approve("memo", 1, user_id=7, role="finance")

        assert not memo.approved_by("finance")
        mismatch = next(
            r for r in _logs(log_stream) if r["message"] == "approval_reconciliation_mismatch"
        )
        assert mismatch["expected_progress"] == "pending_gmd"
        assert mismatch["backend_progress"] == "pending_finance"


class TestRejectAndPay:

    def test_reject(self):
        gateway = FakeGateway([_memo(approved_by_finance=1)])
        service = ApprovalWorkflowService(gateway)

        memo = service.reject("memo", 1, user_id=8, role="gmd")

        assert memo.status is DocumentStatus.REJECTED
        assert memo.rejected_by("gmd")

    def test_pay_after_full_approval(self):
        gateway = FakeGateway([_memo(
            approved_by_finance=1, approved_by_gmd=1, approved_by_chairman=1,
            status="approved",
        )])
        service = ApprovalWorkflowService(gateway)

        memo = service.pay(1, user_id=7, role="finance")

        assert memo.is_paid
        assert memo.status is DocumentStatus.COMPLETED

    def test_pay_before_approval_sends_nothing(self):
        gateway = FakeGateway([_memo()])
        service = ApprovalWorkflowService(gateway)

        with pytest.raises(PreconditionError):
            service.pay(1, user_id=7)
        assert gateway.sent == []


class TestAcknowledge:

    def test_acknowledge(self, clock):
        gateway = FakeGateway([_memo(memo_type="report", recipients="[5, 9]")])
        service = ApprovalWorkflowService(gateway, clock=clock)

        memo = service.acknowledge(1, user_id=5, role="hr", department="HR")

        assert [ack.acknowledger_id for ack in memo.acknowledgments] == [5]
        assert gateway.sent == [("acknowledge", 1, 5)]

    def test_repeat_acknowledgment_sends_nothing(self, clock):
        gateway = FakeGateway([_memo(
            memo_type="report", acknowledgments=json.dumps([{"id": 5}]),
        )])
        service = ApprovalWorkflowService(gateway, clock=clock)

        memo = service.acknowledge(1, user_id=5)

        assert len(memo.acknowledgments) == 1
        assert gateway.sent == []

    def test_creator_cannot_acknowledge(self, clock):
        gateway = FakeGateway([_memo(memo_type="report")])
        service = ApprovalWorkflowService(gateway, clock=clock)

        with pytest.raises(PreconditionError):
            service.acknowledge(1, user_id=100)
        assert gateway.sent == []


class TestReads:

    def test_creator_lookup_supplies_department(self):
        class Directory:
            def department_of(self, user_id):
                return "ICT"

        gateway = FakeGateway([("requisition", {"id": 5, "created_by": 1})])
        service = ApprovalWorkflowService(gateway, creator_lookup=Directory())

        req = service.load("requisition", 5)

        assert req.department == "ICT"

    def test_tab_counts_and_tabs_agree(self):
        gateway = FakeGateway([
            _memo(1),
            _memo(2, approved_by_finance=1),
            _memo(3, rejected_by_finance=1),
            _memo(4, approved_by_finance=1, approved_by_gmd=1, approved_by_chairman=1,
                  paid_by_finance=1),
        ])
        service = ApprovalWorkflowService(gateway)

        counts = service.tab_counts("memo", 7, "finance")
        tabs = service.tabs("memo", 7, "finance")

        assert counts == {c: len(docs) for c, docs in tabs.items()}
        assert counts[Classification.PENDING] == 1
        assert counts[Classification.APPROVED] == 1
        assert counts[Classification.REJECTED] == 1
        assert counts[Classification.COMPLETED] == 1
