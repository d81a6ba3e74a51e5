"""
erp_engines.approval_chain -- Approval chain resolution and role normalization.

Responsibility:
    Given a document's type and department, return the ordered roles that
    must approve it.  Provide the single role-normalization function used
    wherever a user's role is compared to a chain position.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import erp_kernel types.

Invariants enforced:
    - Chains are strictly ordered tuples; the first role acts first.
    - Role aliases ("executive", "ict_executive", "ict", ...) collapse to
      the canonical ``executive`` position.

Failure modes:
    - ConfigurationError if the document type is unknown or the policy
      defines no chain for it.
"""

from __future__ import annotations

from erp_kernel.domain.approval import (
    DEFAULT_CHAIN_POLICY,
    DEFAULT_DEPARTMENT,
    ChainPolicy,
    Document,
    DocumentType,
    canonical_role,
)
from erp_kernel.exceptions import ConfigurationError


def normalize_role(role: str | None, policy: ChainPolicy | None = None) -> str:
    """Map a literal role string onto its chain position name.

    Any role containing one of the executive aliases (``executive`` or
    ``ict`` by default) becomes ``executive``; everything else is
    lower-cased and trimmed.  ``None`` normalizes to the empty string.
    """
    return canonical_role(role, (policy or DEFAULT_CHAIN_POLICY).executive_aliases)


def normalize_department(department: str | None) -> str:
    """Lower-case, trimmed department name; empty string when missing."""
    if department is None:
        return ""
    return str(department).strip().lower()


def resolve_chain(
    document_type: DocumentType | str,
    department: str | None,
    policy: ChainPolicy | None = None,
) -> tuple[str, ...]:
    """Return the ordered approver roles for a document type and department.

    Args:
        document_type: ``memo``, ``leave`` or ``requisition`` (any case).
        department: Creator's department; matched case-insensitively.
        policy: Chain policy (defaults to the built-in policy).

    Returns:
        Tuple of normalized role names, first approver first.

    Raises:
        ConfigurationError: unknown document type, or no chain (and no
            fallback) configured for it.
    """
    policy = policy or DEFAULT_CHAIN_POLICY
    doc_type = DocumentType.parse(document_type)

    table = policy.chains.get(doc_type)
    if not table:
        raise ConfigurationError(doc_type.value, department)

    chain = table.get(normalize_department(department)) or table.get(DEFAULT_DEPARTMENT)
    if not chain:
        raise ConfigurationError(doc_type.value, department)
    return chain


def chain_for(document: Document, policy: ChainPolicy | None = None) -> tuple[str, ...]:
    """Resolve the chain for an already-adapted document."""
    return resolve_chain(document.document_type, document.department, policy)


def next_role_after(chain: tuple[str, ...], role: str) -> str | None:
    """Role that follows ``role`` in ``chain``; None if last or not a member."""
    try:
        index = chain.index(role)
    except ValueError:
        return None
    return chain[index + 1] if index + 1 < len(chain) else None
