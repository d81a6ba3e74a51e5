"""
erp_services.approval_workflow -- Approval actions against the live backend.

Responsibility:
    Orchestrates one user action end to end: fetch the record, adapt it,
    run the pure transition to pre-validate, send the action, re-fetch
    and adapt again.  The backend is authoritative; the re-fetched
    document is what callers get back.

Architecture position:
    Services -- imperative shell.  Composes erp_ingestion (adapters),
    erp_engines (pure transitions) and the ``DocumentGateway``.

Invariants enforced:
    - Ineligible actions are rejected locally, before any request is sent.
    - After a successful send the returned document reflects the backend,
      not the locally computed result.  A disagreement between the two is
      logged (``approval_reconciliation_mismatch``) and the backend wins.

Failure modes:
    - NotEligibleError / TerminalStateError / PreconditionError from the
      engines (no request sent) or from the gateway (backend refusal).
    - ConfigurationError for an unknown document type or chain.
    - ``requests`` exceptions on transport failure.
"""

from __future__ import annotations

from typing import Any, Callable

from erp_engines import (
    approval_progress,
    approve,
    count_by_classification,
    normalize_role,
    partition_by_classification,
    pay,
    record_acknowledgment,
    reject,
)
from erp_ingestion.adapters import CreatorLookup, get_adapter
from erp_kernel.domain.approval import (
    DEFAULT_CHAIN_POLICY,
    ChainPolicy,
    Classification,
    Document,
    DocumentType,
    Memo,
)
from erp_kernel.domain.clock import Clock, SystemClock
from erp_kernel.logging_config import LogContext, get_logger
from erp_services.document_gateway import DocumentGateway

logger = get_logger("services.approval_workflow")


class ApprovalWorkflowService:
    """Runs approval actions against the backend through a gateway."""

    def __init__(
        self,
        gateway: DocumentGateway,
        creator_lookup: CreatorLookup | None = None,
        policy: ChainPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._gateway = gateway
        self._creator_lookup = creator_lookup
        self._policy = policy or DEFAULT_CHAIN_POLICY
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self, document_type: DocumentType | str, document_id: Any) -> Document:
        doc_type = DocumentType.parse(document_type)
        raw = self._gateway.fetch(doc_type, document_id)
        return get_adapter(doc_type, self._policy).to_document(raw, self._creator_lookup)

    def load_for_user(
        self,
        document_type: DocumentType | str,
        user_id: Any,
        role: str | None = None,
    ) -> list[Document]:
        doc_type = DocumentType.parse(document_type)
        adapter = get_adapter(doc_type, self._policy)
        return [
            adapter.to_document(raw, self._creator_lookup)
            for raw in self._gateway.list_for_user(doc_type, user_id, role=role)
        ]

    def tabs(
        self,
        document_type: DocumentType | str,
        user_id: Any,
        role: str | None,
    ) -> dict[Classification, list[Document]]:
        """The viewer's documents split into tabs."""
        documents = self.load_for_user(document_type, user_id, role=role)
        return partition_by_classification(documents, user_id, role, self._policy)

    def tab_counts(
        self,
        document_type: DocumentType | str,
        user_id: Any,
        role: str | None,
    ) -> dict[Classification, int]:
        """Per-tab counts, from the same classification as ``tabs``."""
        documents = self.load_for_user(document_type, user_id, role=role)
        return count_by_classification(documents, user_id, role, self._policy)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def approve(
        self,
        document_type: DocumentType | str,
        document_id: Any,
        user_id: Any,
        role: str,
        department: str | None = None,
    ) -> Document:
        """Approve as ``role``.  ``department`` is the actor's department."""
        doc_type = DocumentType.parse(document_type)
        return self._run(
            "approve",
            doc_type,
            document_id,
            user_id,
            transition=lambda doc: approve(doc, acting_role=role, acting_user_id=user_id,
                                           policy=self._policy),
            send=lambda: self._gateway.send_approve(
                doc_type, document_id, user_id, role, department,
            ),
            acting_role=role,
        )

    def reject(
        self,
        document_type: DocumentType | str,
        document_id: Any,
        user_id: Any,
        role: str,
    ) -> Document:
        doc_type = DocumentType.parse(document_type)
        return self._run(
            "reject",
            doc_type,
            document_id,
            user_id,
            transition=lambda doc: reject(doc, acting_role=role, acting_user_id=user_id,
                                          policy=self._policy),
            send=lambda: self._gateway.send_reject(doc_type, document_id, user_id, role),
            acting_role=role,
        )

    def pay(self, document_id: Any, user_id: Any, role: str | None = None) -> Document:
        """Finance marks a fully approved memo as paid."""
        return self._run(
            "pay",
            DocumentType.MEMO,
            document_id,
            user_id,
            transition=lambda doc: pay(doc, acting_user_id=user_id, acting_role=role,
                                       policy=self._policy),
            send=lambda: self._gateway.send_pay(document_id, user_id, role),
            acting_role=role,
        )

    def acknowledge(
        self,
        document_id: Any,
        user_id: Any,
        role: str | None = None,
        department: str | None = None,
        name: str | None = None,
    ) -> Memo:
        """Acknowledge a report memo.  A repeat acknowledgment sends nothing."""
        with LogContext.bind(
            actor_id=user_id, document_id=document_id, document_type=DocumentType.MEMO.value,
        ):
            memo = self.load(DocumentType.MEMO, document_id)
            updated = record_acknowledgment(
                memo, user_id, role, department,
                clock=self._clock, name=name, policy=self._policy,
            )
            if updated is memo:
                logger.info("acknowledgment_already_recorded")
                return memo

            self._gateway.send_acknowledgment(document_id, user_id)
            refreshed = self.load(DocumentType.MEMO, document_id)
            logger.info(
                "memo_acknowledged",
                extra={
                    "acknowledger_role": normalize_role(role, self._policy),
                    "acknowledgment_count": len(refreshed.acknowledgments),
                    "pending_acknowledgers": list(refreshed.pending_acknowledgers),
                },
            )
            return refreshed

    def _run(
        self,
        action: str,
        doc_type: DocumentType,
        document_id: Any,
        user_id: Any,
        transition: Callable[[Document], Document],
        send: Callable[[], Any],
        acting_role: str | None,
    ) -> Document:
        with LogContext.bind(
            actor_id=user_id, document_id=document_id, document_type=doc_type.value,
        ):
            before = self.load(doc_type, document_id)
            expected = transition(before)

            send()
            after = self.load(doc_type, document_id)

            from_progress = approval_progress(before, self._policy)
            expected_progress = approval_progress(expected, self._policy)
            to_progress = approval_progress(after, self._policy)

            logger.info(
                "approval_transition",
                extra={
                    "action": action,
                    "acting_role": normalize_role(acting_role, self._policy),
                    "from_progress": from_progress,
                    "to_progress": to_progress,
                    "field_deltas": get_adapter(doc_type, self._policy).field_deltas(
                        before, after,
                    ),
                },
            )
            if expected_progress != to_progress:
                logger.warning(
                    "approval_reconciliation_mismatch",
                    extra={
                        "action": action,
                        "expected_progress": expected_progress,
                        "backend_progress": to_progress,
                    },
                )
            return after
