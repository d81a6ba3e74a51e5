"""
Approval domain types (``erp_kernel.domain.approval``).

Responsibility
--------------
Pure value objects for the approval-routing core.  Defines the document
model (Memo, Leave, Requisition), the coarse document status, the derived
approval state, the tab classification, and the chain policy consumed by
the engines.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  May import
only from ``erp_kernel.exceptions`` and sibling domain modules.

Invariants enforced
-------------------
* Per-role flag exclusivity -- a role can never hold both an approval and
  a rejection on the same document (``Document.__post_init__``).
* Immutability -- documents are frozen; flag mappings are wrapped in
  ``MappingProxyType``.  Transitions produce new values via
  ``dataclasses.replace``.
* Flags are keyed by *normalized* role names.  Normalization happens once,
  at the boundary (``erp_ingestion``), never here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from erp_kernel.domain.acknowledgment import Acknowledgment
from erp_kernel.exceptions import ConfigurationError


# =========================================================================
# Roles
# =========================================================================

MANAGER = "manager"
EXECUTIVE = "executive"
FINANCE = "finance"
HR = "hr"
GMD = "gmd"
CHAIRMAN = "chairman"


def canonical_role(role: str | None, executive_aliases: tuple[str, ...]) -> str:
    """Lower-cased, trimmed role; any role containing an executive alias
    collapses to ``executive``.  ``None`` becomes the empty string."""
    if role is None:
        return ""
    value = str(role).strip().lower()
    if value and any(alias in value for alias in executive_aliases):
        return EXECUTIVE
    return value


# =========================================================================
# Document type and status
# =========================================================================


class DocumentType(str, Enum):
    """Document types that travel through an approval chain."""

    MEMO = "memo"
    LEAVE = "leave"
    REQUISITION = "requisition"

    @classmethod
    def parse(cls, value: DocumentType | str) -> DocumentType:
        """Parse a document type case-insensitively.

        Raises:
            ConfigurationError: if ``value`` names no known document type.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError(str(value))


class DocumentStatus(str, Enum):
    """Coarse, backend-recorded status label."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class ApprovalStateKind(str, Enum):
    """Derived position of a document in its approval chain."""

    PENDING = "pending"
    REJECTED = "rejected"
    FULLY_APPROVED = "fully_approved"
    COMPLETED = "completed"


class Classification(str, Enum):
    """Tab classification of a document for a given viewer.

    Members are declared in priority order: when several conditions hold,
    the first one listed wins.
    """

    COMPLETED = "completed"
    REJECTED = "rejected"
    APPROVED = "approved"
    PENDING = "pending"


@dataclass(frozen=True)
class ApprovalState:
    """Derived approval state.

    ``role_index`` is set for PENDING (position of the next approver),
    ``rejected_by`` for REJECTED (may be None when only the status label
    says rejected).
    """

    kind: ApprovalStateKind
    chain: tuple[str, ...]
    role_index: int | None = None
    rejected_by: str | None = None

    @property
    def next_role(self) -> str | None:
        if self.kind is ApprovalStateKind.PENDING and self.role_index is not None:
            return self.chain[self.role_index]
        return None


# =========================================================================
# Chain policy
# =========================================================================

DEFAULT_DEPARTMENT = "*"

_ICT_CHAIN = (MANAGER, EXECUTIVE, FINANCE, GMD, CHAIRMAN)
_FINANCE_CHAIN = (FINANCE, GMD, CHAIRMAN)
_LEAVE_CHAIN = (MANAGER, EXECUTIVE, HR, GMD, CHAIRMAN)


@dataclass(frozen=True)
class ChainPolicy:
    """Which roles approve which documents, and the override switches.

    ``chains`` maps a document type to a department-keyed table of role
    sequences.  Department keys are lower-case; ``"*"`` is the fallback.

    Chain roles are stored in canonical form (see ``canonical_role``), so
    ``ict_executive`` in a chain is the ``executive`` position.

    ``chairman_override`` lets the chairman act whenever they have not yet
    acted, regardless of queue position.  ``creator_waits_for_payment``
    keeps a Memo in the creator's pending tab until finance has paid it.
    """

    chains: Mapping[DocumentType, Mapping[str, tuple[str, ...]]]
    executive_aliases: tuple[str, ...] = (EXECUTIVE, "ict")
    chairman_role: str = CHAIRMAN
    payment_role: str = FINANCE
    chairman_override: bool = True
    creator_waits_for_payment: bool = False
    payment_step_types: frozenset[DocumentType] = frozenset({DocumentType.MEMO})

    def __post_init__(self) -> None:
        aliases = tuple(a.strip().lower() for a in self.executive_aliases)
        object.__setattr__(self, "executive_aliases", aliases)
        frozen = {
            DocumentType.parse(doc_type): MappingProxyType({
                dept.strip().lower(): tuple(canonical_role(r, aliases) for r in roles)
                for dept, roles in table.items()
            })
            for doc_type, table in self.chains.items()
        }
        object.__setattr__(self, "chains", MappingProxyType(frozen))

    def has_payment_step(self, document_type: DocumentType) -> bool:
        return document_type in self.payment_step_types


DEFAULT_CHAIN_POLICY = ChainPolicy(
    chains={
        DocumentType.MEMO: {"ict": _ICT_CHAIN, DEFAULT_DEPARTMENT: _FINANCE_CHAIN},
        DocumentType.REQUISITION: {"ict": _ICT_CHAIN, DEFAULT_DEPARTMENT: _FINANCE_CHAIN},
        DocumentType.LEAVE: {DEFAULT_DEPARTMENT: _LEAVE_CHAIN},
    },
)


# =========================================================================
# Documents
# =========================================================================


def _freeze_flags(flags: Mapping[str, Any] | None) -> MappingProxyType:
    return MappingProxyType({role: bool(v) for role, v in (flags or {}).items()})


@dataclass(frozen=True)
class Document:
    """A document routed through an approval chain.

    ``approvals`` / ``rejections`` map a normalized role to its flag; a
    missing role means "not yet acted".
    """

    id: Any
    created_by: Any
    document_type: DocumentType
    department: str | None = None
    status: DocumentStatus = DocumentStatus.PENDING
    approvals: Mapping[str, bool] = field(default_factory=dict)
    rejections: Mapping[str, bool] = field(default_factory=dict)
    title: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "document_type", DocumentType.parse(self.document_type))
        if not isinstance(self.status, DocumentStatus):
            object.__setattr__(self, "status", DocumentStatus(self.status))
        object.__setattr__(self, "approvals", _freeze_flags(self.approvals))
        object.__setattr__(self, "rejections", _freeze_flags(self.rejections))

        # INVARIANT: approval and rejection are mutually exclusive per role
        conflicting = sorted(
            role for role, approved in self.approvals.items()
            if approved and self.rejections.get(role, False)
        )
        if conflicting:
            raise ValueError(
                f"Document {self.id}: roles both approved and rejected: "
                f"{', '.join(conflicting)}"
            )

    def approved_by(self, role: str) -> bool:
        return self.approvals.get(role, False)

    def rejected_by(self, role: str) -> bool:
        return self.rejections.get(role, False)

    @property
    def has_rejection(self) -> bool:
        return any(self.rejections.values())

    @property
    def is_paid(self) -> bool:
        return False


@dataclass(frozen=True)
class Memo(Document):
    """Memo, including the report-type acknowledgment data.

    ``finance_actioned`` mirrors the backend ``paid_by_finance`` flag.
    """

    document_type: DocumentType = DocumentType.MEMO
    memo_type: str = "normal"
    finance_actioned: bool = False
    recipients: tuple[Any, ...] = ()
    cc: tuple[Any, ...] = ()
    acknowledgments: tuple[Acknowledgment, ...] = ()
    pending_acknowledgers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "recipients", tuple(self.recipients))
        object.__setattr__(self, "cc", tuple(self.cc))
        object.__setattr__(self, "acknowledgments", tuple(self.acknowledgments))
        object.__setattr__(self, "pending_acknowledgers", tuple(self.pending_acknowledgers))

    @property
    def is_report(self) -> bool:
        return (self.memo_type or "").lower() == "report"

    @property
    def is_paid(self) -> bool:
        return self.finance_actioned


@dataclass(frozen=True)
class Leave(Document):
    """Leave request.  The chain is fixed and department-independent."""

    document_type: DocumentType = DocumentType.LEAVE
    leave_type: str | None = None


@dataclass(frozen=True)
class Requisition(Document):
    """Requisition.  The chain depends on the creator's department."""

    document_type: DocumentType = DocumentType.REQUISITION
    total_amount: Decimal | None = None
    priority: str | None = None
