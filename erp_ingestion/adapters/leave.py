"""Leave request adapter.  The chain is fixed, so department is informational."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from erp_ingestion.adapters.base import DocumentAdapter
from erp_kernel.domain.approval import Document, DocumentType, Leave


class LeaveAdapter(DocumentAdapter):
    document_type = DocumentType.LEAVE
    document_class = Leave

    def _extra_fields(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        return {"leave_type": raw.get("leave_type") or raw.get("type")}

    def _extra_record(self, document: Document) -> dict[str, Any]:
        assert isinstance(document, Leave)
        return {"leave_type": document.leave_type}
