"""
Document adapters: backend record <-> ``Document``.

Usage:
    from erp_ingestion.adapters import adapt_record

    doc = adapt_record("requisition", row, creator_lookup=directory)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from erp_ingestion.adapters.base import (
    CreatorLookup,
    DocumentAdapter,
    flag_value,
    parse_flags,
    parse_status,
)
from erp_ingestion.adapters.json_fields import safe_parse_json_list
from erp_ingestion.adapters.leave import LeaveAdapter
from erp_ingestion.adapters.memo import (
    MemoAdapter,
    parse_acknowledgments,
    serialize_acknowledgments,
)
from erp_ingestion.adapters.requisition import RequisitionAdapter
from erp_kernel.domain.approval import ChainPolicy, Document, DocumentType
from erp_kernel.exceptions import ConfigurationError

_ADAPTERS: dict[DocumentType, type[DocumentAdapter]] = {
    DocumentType.MEMO: MemoAdapter,
    DocumentType.LEAVE: LeaveAdapter,
    DocumentType.REQUISITION: RequisitionAdapter,
}


def get_adapter(
    document_type: DocumentType | str,
    policy: ChainPolicy | None = None,
) -> DocumentAdapter:
    """Adapter for ``document_type``.

    Raises:
        ConfigurationError: unknown document type.
    """
    doc_type = DocumentType.parse(document_type)
    adapter_class = _ADAPTERS.get(doc_type)
    if adapter_class is None:
        raise ConfigurationError(doc_type.value)
    return adapter_class(policy)


def adapt_record(
    document_type: DocumentType | str,
    raw: Mapping[str, Any],
    creator_lookup: CreatorLookup | None = None,
    policy: ChainPolicy | None = None,
) -> Document:
    """Convenience: ``get_adapter(document_type).to_document(raw)``."""
    return get_adapter(document_type, policy).to_document(raw, creator_lookup)


__all__ = [
    "CreatorLookup",
    "DocumentAdapter",
    "LeaveAdapter",
    "MemoAdapter",
    "RequisitionAdapter",
    "adapt_record",
    "flag_value",
    "get_adapter",
    "parse_acknowledgments",
    "parse_flags",
    "parse_status",
    "safe_parse_json_list",
    "serialize_acknowledgments",
]
