"""
erp_engines.acknowledgment -- Memo report acknowledgment tracker.

Responsibility:
    Membership tracking for report-type memos: who has acknowledged, who
    still has to.  This is a set, not a chain; there is no ordering
    between acknowledgers.

Architecture position:
    Engines -- pure calculation layer.  Time comes from an injected Clock.

Invariants enforced:
    - At most one acknowledgment per user (``record_acknowledgment`` is
      idempotent and returns the memo unchanged on a repeat).
    - A memo's creator never acknowledges their own memo.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from erp_engines.approval_chain import normalize_role
from erp_engines.tracer import traced_engine
from erp_kernel.domain.acknowledgment import Acknowledgment
from erp_kernel.domain.approval import ChainPolicy, Memo
from erp_kernel.domain.clock import Clock, SystemClock
from erp_kernel.exceptions import PreconditionError


def is_acknowledged_by(memo: Memo, user_id: Any) -> bool:
    """True iff some acknowledgment on the memo was made by ``user_id``."""
    return any(ack.is_by(user_id) for ack in memo.acknowledgments)


def acknowledged_ids(memo: Memo) -> tuple[Any, ...]:
    """Acknowledger ids in acknowledgment order."""
    return tuple(ack.acknowledger_id for ack in memo.acknowledgments)


def pending_recipients(memo: Memo) -> tuple[Any, ...]:
    """Recipients that have not acknowledged yet, in recipient order."""
    return tuple(r for r in memo.recipients if not is_acknowledged_by(memo, r))


@traced_engine("acknowledgment", "1.0")
def record_acknowledgment(
    memo: Memo,
    user_id: Any,
    role: str | None,
    department: str | None,
    clock: Clock | None = None,
    name: str | None = None,
    policy: ChainPolicy | None = None,
) -> Memo:
    """Append an acknowledgment by ``user_id``.

    Returns the memo unchanged if the user already acknowledged it.  The
    acknowledger's role is removed from ``pending_acknowledgers``.

    Raises:
        PreconditionError: ``memo`` is not a Memo, or the user created it.
    """
    if not isinstance(memo, Memo):
        raise PreconditionError(
            str(getattr(memo, "id", None)), "only memos can be acknowledged",
        )
    if is_acknowledged_by(memo, user_id):
        return memo
    if memo.created_by is not None and str(memo.created_by) == str(user_id):
        raise PreconditionError(str(memo.id), "creator cannot acknowledge own memo")

    acknowledgment = Acknowledgment(
        acknowledger_id=user_id,
        role=role,
        department=department,
        timestamp=(clock or SystemClock()).now(),
        name=name,
    )

    pending = list(memo.pending_acknowledgers)
    normalized = normalize_role(role, policy)
    for i, pending_role in enumerate(pending):
        if normalize_role(pending_role, policy) == normalized:
            del pending[i]
            break

    return replace(
        memo,
        acknowledgments=memo.acknowledgments + (acknowledgment,),
        pending_acknowledgers=tuple(pending),
    )
