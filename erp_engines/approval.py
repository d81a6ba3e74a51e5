"""
erp_engines.approval -- Pure approval state machine.

Responsibility:
    Compute, from a document's flags and its resolved chain, the derived
    approval state, the next eligible approver, whether a role may act,
    the tab classification for a viewer, and the document produced by an
    approve / reject / pay transition.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import erp_kernel types and sibling engine modules.

States:
    PENDING(i)      -- chain[i] is the next approver
    REJECTED(role)  -- terminal
    FULLY_APPROVED  -- every chain role approved; terminal unless the
                       document type has a payment step (Memo)
    COMPLETED       -- terminal; Memo paid by finance

Invariants enforced:
    - Sequential chain: a role acts only after every preceding role has
      approved.  The chairman override is the one exception and lives in
      ``_chairman_override_applies``.
    - Flag exclusivity: approve clears the role's rejection and reject
      clears the role's approval.
    - Rejection is terminal: ``next_eligible_role`` is None afterwards.
    - Transitions never mutate; they return a new document.

Failure modes:
    - TerminalStateError when acting on a rejected/completed document.
    - NotEligibleError when the acting role is not next in the chain.
    - PreconditionError when paying an unapproved, already paid or
      non-memo document.
    - ConfigurationError from chain resolution.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from erp_engines.approval_chain import chain_for, normalize_role
from erp_engines.tracer import traced_engine
from erp_kernel.domain.approval import (
    DEFAULT_CHAIN_POLICY,
    ApprovalState,
    ApprovalStateKind,
    ChainPolicy,
    Classification,
    Document,
    DocumentStatus,
    Memo,
)
from erp_kernel.exceptions import (
    NotEligibleError,
    PreconditionError,
    TerminalStateError,
)


# =========================================================================
# Derived state
# =========================================================================


def _consecutive_approvals(document: Document, chain: tuple[str, ...]) -> int:
    count = 0
    for role in chain:
        if not document.approved_by(role):
            break
        count += 1
    return count


def derive_state(document: Document, policy: ChainPolicy | None = None) -> ApprovalState:
    """Derive the approval state from the document's flags.

    Per-role flags are authoritative.  The status label only contributes
    the two terminal facts it is the sole carrier of: ``completed`` and
    ``rejected``.
    """
    policy = policy or DEFAULT_CHAIN_POLICY
    chain = chain_for(document, policy)

    if document.status is DocumentStatus.COMPLETED or document.is_paid:
        return ApprovalState(ApprovalStateKind.COMPLETED, chain)

    if document.has_rejection or document.status is DocumentStatus.REJECTED:
        rejected_by = next((r for r in chain if document.rejected_by(r)), None)
        if rejected_by is None:
            rejected_by = next((r for r, v in document.rejections.items() if v), None)
        return ApprovalState(ApprovalStateKind.REJECTED, chain, rejected_by=rejected_by)

    approved = _consecutive_approvals(document, chain)
    if approved == len(chain):
        return ApprovalState(ApprovalStateKind.FULLY_APPROVED, chain)
    return ApprovalState(ApprovalStateKind.PENDING, chain, role_index=approved)


def _state_is_terminal(
    document: Document,
    state: ApprovalState,
    policy: ChainPolicy,
) -> bool:
    if state.kind in (ApprovalStateKind.REJECTED, ApprovalStateKind.COMPLETED):
        return True
    if state.kind is ApprovalStateKind.FULLY_APPROVED:
        return not policy.has_payment_step(document.document_type)
    return False


def _terminal_label(state: ApprovalState) -> str:
    if state.kind is ApprovalStateKind.FULLY_APPROVED:
        return DocumentStatus.APPROVED.value
    return state.kind.value


def is_terminal(document: Document, policy: ChainPolicy | None = None) -> bool:
    """True if no approve/reject can ever be applied to the document again."""
    policy = policy or DEFAULT_CHAIN_POLICY
    return _state_is_terminal(document, derive_state(document, policy), policy)


def is_fully_approved(document: Document, policy: ChainPolicy | None = None) -> bool:
    """True if every role in the chain has approved."""
    policy = policy or DEFAULT_CHAIN_POLICY
    chain = chain_for(document, policy)
    return _consecutive_approvals(document, chain) == len(chain)


def next_eligible_role(document: Document, policy: ChainPolicy | None = None) -> str | None:
    """Next role in the chain, or None once approved, rejected or completed."""
    return derive_state(document, policy).next_role


# =========================================================================
# Authorization
# =========================================================================


def _chairman_override_applies(
    document: Document,
    role: str,
    state: ApprovalState,
    policy: ChainPolicy,
) -> bool:
    """Chairman may act out of queue order while they have not yet acted.

    Isolated here so the behaviour can be switched off through
    ``ChainPolicy.chairman_override``.
    """
    if not policy.chairman_override:
        return False
    if role != policy.chairman_role or role not in state.chain:
        return False
    if state.kind is not ApprovalStateKind.PENDING:
        return False
    return not document.approved_by(role) and not document.rejected_by(role)


def can_act(
    document: Document,
    acting_role: str | None,
    policy: ChainPolicy | None = None,
) -> bool:
    """True iff ``acting_role`` may approve or reject the document now."""
    policy = policy or DEFAULT_CHAIN_POLICY
    state = derive_state(document, policy)
    if _state_is_terminal(document, state, policy):
        return False

    role = normalize_role(acting_role, policy)
    if not role:
        return False
    if role == state.next_role:
        return True
    return _chairman_override_applies(document, role, state, policy)


def _require_can_act(
    document: Document,
    acting_role: str | None,
    policy: ChainPolicy,
) -> tuple[str, ApprovalState]:
    state = derive_state(document, policy)
    role = normalize_role(acting_role, policy)

    if _state_is_terminal(document, state, policy):
        raise TerminalStateError(str(document.id), _terminal_label(state))

    if not role:
        raise NotEligibleError(str(document.id), str(acting_role), reason="no role given")

    if role != state.next_role and not _chairman_override_applies(document, role, state, policy):
        if state.next_role is None:
            raise NotEligibleError(
                str(document.id), role, reason="no approver is pending",
            )
        raise NotEligibleError(str(document.id), role, expected_role=state.next_role)

    return role, state


# =========================================================================
# Transitions
# =========================================================================


@traced_engine("approval", "1.0", fingerprint_fields=("acting_role",))
def approve(
    document: Document,
    acting_role: str,
    acting_user_id: Any,
    policy: ChainPolicy | None = None,
) -> Document:
    """Record the acting role's approval.

    Status becomes ``approved`` when the chain is now fully approved and is
    otherwise left unchanged.

    Raises:
        TerminalStateError: document rejected or completed (or fully
            approved without a payment step).
        NotEligibleError: acting role is not next and no override applies.
    """
    policy = policy or DEFAULT_CHAIN_POLICY
    role, state = _require_can_act(document, acting_role, policy)

    approvals = dict(document.approvals)
    approvals[role] = True
    rejections = dict(document.rejections)
    rejections.pop(role, None)

    updated = replace(document, approvals=approvals, rejections=rejections)
    if _consecutive_approvals(updated, state.chain) == len(state.chain):
        updated = replace(updated, status=DocumentStatus.APPROVED)
    return updated


@traced_engine("approval", "1.0", fingerprint_fields=("acting_role",))
def reject(
    document: Document,
    acting_role: str,
    acting_user_id: Any,
    policy: ChainPolicy | None = None,
) -> Document:
    """Record the acting role's rejection.  Status becomes ``rejected``.

    Raises:
        TerminalStateError, NotEligibleError: as for ``approve``.
    """
    policy = policy or DEFAULT_CHAIN_POLICY
    role, _state = _require_can_act(document, acting_role, policy)

    rejections = dict(document.rejections)
    rejections[role] = True
    approvals = dict(document.approvals)
    approvals.pop(role, None)

    return replace(
        document,
        approvals=approvals,
        rejections=rejections,
        status=DocumentStatus.REJECTED,
    )


@traced_engine("approval", "1.0", fingerprint_fields=("acting_role",))
def pay(
    document: Document,
    acting_user_id: Any,
    acting_role: str | None = None,
    policy: ChainPolicy | None = None,
) -> Document:
    """Finance's terminal payment step for a fully approved Memo.

    Raises:
        PreconditionError: not a memo, already paid, not labelled
            ``approved``, or its flags do not show the whole chain approved.
        NotEligibleError: ``acting_role`` given and not the payment role.
    """
    policy = policy or DEFAULT_CHAIN_POLICY
    doc_id = str(document.id)

    if not isinstance(document, Memo) or not policy.has_payment_step(document.document_type):
        raise PreconditionError(
            doc_id, f"{document.document_type.value} documents have no payment step",
        )
    if document.finance_actioned:
        raise PreconditionError(doc_id, "already paid by finance")
    if document.status is not DocumentStatus.APPROVED:
        raise PreconditionError(
            doc_id, f"status is {document.status.value!r}, expected 'approved'",
        )
    state = derive_state(document, policy)
    if state.kind is not ApprovalStateKind.FULLY_APPROVED:
        raise PreconditionError(
            doc_id, f"approval state is {state.kind.value!r}, expected fully approved",
        )
    if acting_role is not None:
        role = normalize_role(acting_role, policy)
        if role != policy.payment_role:
            raise NotEligibleError(doc_id, role, expected_role=policy.payment_role)

    return replace(document, finance_actioned=True, status=DocumentStatus.COMPLETED)


# =========================================================================
# Classification (single authority for tab filtering)
# =========================================================================


def _same_user(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return False
    return str(a) == str(b)


def classify(
    document: Document,
    viewer_user_id: Any,
    viewer_role: str | None,
    policy: ChainPolicy | None = None,
) -> Classification:
    """Tab classification of ``document`` for one viewer.

    Priority: completed > rejected > approved > pending.
    """
    policy = policy or DEFAULT_CHAIN_POLICY
    state = derive_state(document, policy)

    if state.kind is ApprovalStateKind.COMPLETED:
        return Classification.COMPLETED
    if state.kind is ApprovalStateKind.REJECTED:
        return Classification.REJECTED

    fully_approved = state.kind is ApprovalStateKind.FULLY_APPROVED

    if _same_user(viewer_user_id, document.created_by):
        waits_for_payment = (
            policy.creator_waits_for_payment
            and policy.has_payment_step(document.document_type)
        )
        if fully_approved and not waits_for_payment:
            return Classification.APPROVED
        return Classification.PENDING

    role = normalize_role(viewer_role, policy)
    if fully_approved or (role in state.chain and document.approved_by(role)):
        return Classification.APPROVED
    return Classification.PENDING


def partition_by_classification(
    documents: Iterable[Document],
    viewer_user_id: Any,
    viewer_role: str | None,
    policy: ChainPolicy | None = None,
) -> dict[Classification, list[Document]]:
    """Split documents into tabs.  Every classification key is present."""
    tabs: dict[Classification, list[Document]] = {c: [] for c in Classification}
    for document in documents:
        tabs[classify(document, viewer_user_id, viewer_role, policy)].append(document)
    return tabs


def count_by_classification(
    documents: Iterable[Document],
    viewer_user_id: Any,
    viewer_role: str | None,
    policy: ChainPolicy | None = None,
) -> dict[Classification, int]:
    """Tab counts derived from ``classify``."""
    tabs = partition_by_classification(documents, viewer_user_id, viewer_role, policy)
    return {c: len(docs) for c, docs in tabs.items()}


# =========================================================================
# Progress reporting
# =========================================================================


def approval_progress(document: Document, policy: ChainPolicy | None = None) -> str:
    """Short progress label: ``pending_<role>``, ``fully_approved``,
    ``rejected`` or ``completed``."""
    state = derive_state(document, policy)
    if state.kind is ApprovalStateKind.PENDING:
        return f"pending_{state.next_role}"
    return state.kind.value


def approval_flow(
    document: Document,
    policy: ChainPolicy | None = None,
) -> tuple[tuple[str, str], ...]:
    """Per-role decision along the chain: approved, rejected or pending."""
    chain = chain_for(document, policy)
    flow = []
    for role in chain:
        if document.approved_by(role):
            decision = "approved"
        elif document.rejected_by(role):
            decision = "rejected"
        else:
            decision = "pending"
        flow.append((role, decision))
    return tuple(flow)
