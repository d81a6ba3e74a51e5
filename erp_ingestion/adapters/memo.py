"""
Memo adapter.

Beyond the approval flags a memo carries ``paid_by_finance`` (the terminal
payment step), its ``recipients`` / ``cc`` lists, and for report-type
memos an ``acknowledgments`` field.  The latter mixes two things: plain
role strings (roles still expected to acknowledge, written at creation)
and objects (who has acknowledged).  Both may arrive JSON-encoded.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from erp_ingestion.adapters.base import DocumentAdapter, flag_value
from erp_ingestion.adapters.json_fields import safe_parse_json_list
from erp_kernel.domain.acknowledgment import Acknowledgment
from erp_kernel.domain.approval import Document, DocumentType, Memo
from erp_kernel.logging_config import get_logger

logger = get_logger("ingestion.memo")


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def _first_present(entry: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def parse_acknowledgments(
    value: Any,
) -> tuple[tuple[Acknowledgment, ...], tuple[str, ...]]:
    """Split a raw ``acknowledgments`` field into (acknowledgments, pending roles).

    Never raises: malformed input yields two empty tuples.  Role strings are
    pending acknowledgers; a bare user id (an int or a numeric string) or an
    object with an acknowledger id is an acknowledgment.  Anything else is
    skipped.
    """
    acknowledgments: list[Acknowledgment] = []
    pending: list[str] = []

    def _add(acknowledger_id: Any, entry: Mapping[str, Any]) -> None:
        if any(ack.is_by(acknowledger_id) for ack in acknowledgments):
            return
        acknowledgments.append(Acknowledgment(
            acknowledger_id=acknowledger_id,
            role=_first_present(entry, "role"),
            department=_first_present(entry, "department", "dept"),
            timestamp=_parse_timestamp(
                _first_present(entry, "timestamp", "acknowledged_at"),
            ),
            name=_first_present(entry, "name"),
        ))

    for entry in safe_parse_json_list(value, "acknowledgments"):
        if isinstance(entry, int) and not isinstance(entry, bool):
            _add(entry, {})
            continue
        if isinstance(entry, str):
            text = entry.strip()
            if text.isdigit():
                _add(text, {})
            elif text:
                pending.append(text)
            continue
        if not isinstance(entry, Mapping):
            logger.warning(
                "acknowledgment_entry_skipped",
                extra={"entry_type": type(entry).__name__},
            )
            continue

        acknowledger_id = _first_present(entry, "acknowledger_id", "id", "user_id")
        if acknowledger_id is None:
            logger.warning("acknowledgment_entry_without_id")
            continue
        _add(acknowledger_id, entry)

    return tuple(acknowledgments), tuple(pending)


def serialize_acknowledgments(memo: Memo) -> list[Any]:
    """Inverse of ``parse_acknowledgments``: pending roles then entries."""
    entries: list[Any] = list(memo.pending_acknowledgers)
    for ack in memo.acknowledgments:
        entries.append({
            "id": ack.acknowledger_id,
            "name": ack.name,
            "role": ack.role,
            "dept": ack.department,
            "timestamp": ack.timestamp.isoformat() if ack.timestamp else None,
        })
    return entries


class MemoAdapter(DocumentAdapter):
    document_type = DocumentType.MEMO
    document_class = Memo

    def _extra_fields(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        acknowledgments, pending = parse_acknowledgments(raw.get("acknowledgments"))
        return {
            "memo_type": str(raw.get("memo_type") or "normal"),
            "finance_actioned": flag_value(raw.get("paid_by_finance")) > 0,
            "recipients": tuple(safe_parse_json_list(raw.get("recipients"), "recipients")),
            "cc": tuple(safe_parse_json_list(raw.get("cc"), "cc")),
            "acknowledgments": acknowledgments,
            "pending_acknowledgers": pending,
        }

    def _extra_record(self, document: Document) -> dict[str, Any]:
        assert isinstance(document, Memo)
        return {
            "memo_type": document.memo_type,
            "paid_by_finance": int(document.finance_actioned),
            "recipients": list(document.recipients),
            "cc": list(document.cc),
            "acknowledgments": serialize_acknowledgments(document),
        }
