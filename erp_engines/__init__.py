"""
Module: erp_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    approval engines.  This is the canonical import surface for higher
    layers (erp_ingestion, erp_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import erp_kernel (and sibling engine modules).
    MUST NOT import erp_config, erp_ingestion or erp_services.

Invariants enforced:
    - Purity: engines never read the clock directly; time is injected.
    - Determinism: identical inputs always produce identical outputs.
    - Immutability: transitions return new documents.

Usage:
    from erp_engines import approve, classify, resolve_chain
"""

from erp_engines.acknowledgment import (
    acknowledged_ids,
    is_acknowledged_by,
    pending_recipients,
    record_acknowledgment,
)
from erp_engines.approval import (
    approval_flow,
    approval_progress,
    approve,
    can_act,
    classify,
    count_by_classification,
    derive_state,
    is_fully_approved,
    is_terminal,
    next_eligible_role,
    partition_by_classification,
    pay,
    reject,
)
from erp_engines.approval_chain import (
    chain_for,
    next_role_after,
    normalize_department,
    normalize_role,
    resolve_chain,
)

__all__ = [
    "acknowledged_ids",
    "approval_flow",
    "approval_progress",
    "approve",
    "can_act",
    "chain_for",
    "classify",
    "count_by_classification",
    "derive_state",
    "is_acknowledged_by",
    "is_fully_approved",
    "is_terminal",
    "next_eligible_role",
    "next_role_after",
    "normalize_department",
    "normalize_role",
    "partition_by_classification",
    "pay",
    "pending_recipients",
    "record_acknowledgment",
    "reject",
    "resolve_chain",
]
