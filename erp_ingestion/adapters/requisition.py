"""
Requisition adapter.

The backend joins the creator's department onto list/detail rows as
``sender_department``; the chain variant depends on it.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from erp_ingestion.adapters.base import DocumentAdapter
from erp_kernel.domain.approval import Document, DocumentType, Requisition


def _parse_amount(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


class RequisitionAdapter(DocumentAdapter):
    document_type = DocumentType.REQUISITION
    document_class = Requisition

    def _extra_fields(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "total_amount": _parse_amount(raw.get("total_amount")),
            "priority": raw.get("priority"),
        }

    def _extra_record(self, document: Document) -> dict[str, Any]:
        assert isinstance(document, Requisition)
        amount = document.total_amount
        return {
            "total_amount": str(amount) if amount is not None else None,
            "priority": document.priority,
        }
