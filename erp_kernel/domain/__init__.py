"""
Pure domain layer.

This module contains pure value objects with NO dependencies on:
- HTTP / the backend API
- Configuration files
- I/O

All domain objects are immutable and deterministic.
"""

from erp_kernel.domain.acknowledgment import Acknowledgment
from erp_kernel.domain.approval import (
    CHAIRMAN,
    DEFAULT_CHAIN_POLICY,
    DEFAULT_DEPARTMENT,
    EXECUTIVE,
    FINANCE,
    GMD,
    HR,
    MANAGER,
    ApprovalState,
    ApprovalStateKind,
    ChainPolicy,
    Classification,
    Document,
    DocumentStatus,
    DocumentType,
    Leave,
    Memo,
    Requisition,
    canonical_role,
)
from erp_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = [
    "Acknowledgment",
    "ApprovalState",
    "ApprovalStateKind",
    "CHAIRMAN",
    "ChainPolicy",
    "Classification",
    "Clock",
    "DEFAULT_CHAIN_POLICY",
    "DEFAULT_DEPARTMENT",
    "DeterministicClock",
    "Document",
    "DocumentStatus",
    "DocumentType",
    "EXECUTIVE",
    "FINANCE",
    "GMD",
    "HR",
    "Leave",
    "MANAGER",
    "Memo",
    "Requisition",
    "SystemClock",
    "canonical_role",
]
