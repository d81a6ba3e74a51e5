"""
Document adapter base and shared field parsing.

Contract:
    DocumentAdapter.to_document(raw) turns one backend record (a dict as
    returned by the REST API) into a frozen ``Document``.
    DocumentAdapter.to_record(doc) turns it back into the backend shape.
    DocumentAdapter.field_deltas(before, after) yields only the record
    fields a transition changed.

Role normalization happens here, once: every ``approved_by_<role>`` /
``rejected_by_<role>`` key is folded onto its normalized role name before
the document is built.

Architecture: erp_ingestion/adapters.  No HTTP; imports kernel + engines.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, ClassVar, Protocol, runtime_checkable

from erp_engines.approval_chain import chain_for, normalize_role
from erp_kernel.domain.approval import (
    DEFAULT_CHAIN_POLICY,
    ChainPolicy,
    Document,
    DocumentStatus,
    DocumentType,
)
from erp_kernel.exceptions import ConfigurationError
from erp_kernel.logging_config import get_logger

logger = get_logger("ingestion.adapters")

_FLAG_KEY = re.compile(r"^(approved|rejected)_by_(.+)$")

_TRUE_WORDS = frozenset({"true", "yes", "y"})


@runtime_checkable
class CreatorLookup(Protocol):
    """Resolves a creator's department when the record does not carry it."""

    def department_of(self, user_id: Any) -> str | None:
        """Return the department of ``user_id`` (None if unknown)."""
        ...


def flag_value(value: Any) -> int:
    """Interpret a backend flag: 1 for set, -1 for the rejected marker, 0 otherwise.

    Accepts booleans, numbers (MySQL tinyint), and their string forms.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float, Decimal)):
        return (value > 0) - (value < 0)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_WORDS:
            return 1
        try:
            number = float(text)
        except ValueError:
            return 0
        return (number > 0) - (number < 0)
    return 0


def parse_status(value: Any) -> DocumentStatus:
    """Map a backend status label onto ``DocumentStatus``.

    ``pending_<role>`` labels become ``in_review``, ``fully_approved``
    becomes ``approved``; anything unrecognized is ``pending``.
    """
    if isinstance(value, DocumentStatus):
        return value
    text = str(value or "").strip().lower().replace(" ", "_")
    try:
        return DocumentStatus(text)
    except ValueError:
        pass
    if text == "fully_approved":
        return DocumentStatus.APPROVED
    if text == "paid":
        return DocumentStatus.COMPLETED
    if text.startswith("pending_"):
        return DocumentStatus.IN_REVIEW
    return DocumentStatus.PENDING


def parse_flags(
    raw: Mapping[str, Any],
    policy: ChainPolicy | None = None,
) -> tuple[dict[str, bool], dict[str, bool]]:
    """Collect approval/rejection flags keyed by normalized role.

    ``approved_by_<role> = -1`` is the backend's rejected marker.  When a
    record carries both an approval and a rejection for a role, the
    rejection wins.
    """
    approvals: dict[str, bool] = {}
    rejections: dict[str, bool] = {}

    for key, value in raw.items():
        match = _FLAG_KEY.match(str(key))
        if match is None:
            continue
        kind, role_part = match.groups()
        role = normalize_role(role_part, policy)
        state = flag_value(value)
        if kind == "approved":
            if state > 0:
                approvals[role] = True
            elif state < 0:
                rejections[role] = True
        elif state != 0:
            rejections[role] = True

    for role in [r for r in approvals if rejections.get(r)]:
        logger.warning(
            "conflicting_flags_rejection_wins",
            extra={"record_id": raw.get("id"), "role": role},
        )
        del approvals[role]

    return approvals, rejections


class DocumentAdapter:
    """Maps raw backend records of one document type to ``Document`` values.

    Subclasses set ``document_type`` / ``document_class`` and may extend
    ``_extra_fields`` and ``_extra_record`` for type-specific data.
    """

    document_type: ClassVar[DocumentType]
    document_class: ClassVar[type[Document]]

    def __init__(self, policy: ChainPolicy | None = None) -> None:
        self._policy = policy or DEFAULT_CHAIN_POLICY

    # ------------------------------------------------------------------
    # Record -> Document
    # ------------------------------------------------------------------

    def to_document(
        self,
        raw: Mapping[str, Any],
        creator_lookup: CreatorLookup | None = None,
    ) -> Document:
        approvals, rejections = parse_flags(raw, self._policy)
        return self.document_class(
            id=raw.get("id"),
            created_by=raw.get("created_by"),
            document_type=self.document_type,
            department=self._department(raw, creator_lookup),
            status=parse_status(raw.get("status")),
            approvals=approvals,
            rejections=rejections,
            title=raw.get("title"),
            **self._extra_fields(raw),
        )

    def _department(
        self,
        raw: Mapping[str, Any],
        creator_lookup: CreatorLookup | None,
    ) -> str | None:
        department = raw.get("department") or raw.get("sender_department")
        if department:
            return str(department)
        created_by = raw.get("created_by")
        if creator_lookup is not None and created_by is not None:
            return creator_lookup.department_of(created_by)
        return None

    def _extra_fields(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Document -> Record
    # ------------------------------------------------------------------

    def to_record(self, document: Document) -> dict[str, Any]:
        """Backend-shaped dict.  Flags are emitted as 1/0 for every chain role
        plus any extra role that carries a flag."""
        record: dict[str, Any] = {
            "id": document.id,
            "created_by": document.created_by,
            "department": document.department,
            "status": document.status.value,
        }
        if document.title is not None:
            record["title"] = document.title

        for role in self._flag_roles(document):
            record[f"approved_by_{role}"] = int(document.approved_by(role))
            record[f"rejected_by_{role}"] = int(document.rejected_by(role))

        record.update(self._extra_record(document))
        return record

    def _flag_roles(self, document: Document) -> list[str]:
        try:
            roles = list(chain_for(document, self._policy))
        except ConfigurationError:
            roles = []
        extras = sorted(
            {r for r, v in document.approvals.items() if v}
            | {r for r, v in document.rejections.items() if v}
        )
        roles.extend(r for r in extras if r not in roles)
        return roles

    def _extra_record(self, document: Document) -> dict[str, Any]:
        return {}

    def field_deltas(self, before: Document, after: Document) -> dict[str, Any]:
        """Record fields whose value differs between ``before`` and ``after``."""
        old = self.to_record(before)
        new = self.to_record(after)
        return {key: value for key, value in new.items() if old.get(key) != value}
