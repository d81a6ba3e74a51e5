"""
DocumentGateway -- REST client for the ERP backend's document routes.

Responsibility:
    Fetch raw memo / leave / requisition records and send the approve,
    reject, pay and acknowledge actions.  Returns backend-shaped dicts;
    adaptation into ``Document`` values is the caller's job.

Architecture position:
    Services -- imperative shell, the only module that performs HTTP.
    Uses a ``requests.Session`` (injectable for tests).

Failure modes:
    - HTTP 400 / 403  -> NotEligibleError (backend refused the actor).
    - HTTP 409        -> TerminalStateError (document already settled).
    - Other 4xx / 5xx -> ``requests.HTTPError`` from ``raise_for_status``.
    - Connection errors and timeouts propagate as ``requests`` exceptions.
    - No route configured for (document type, action) -> PreconditionError.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import requests

from erp_kernel.domain.approval import DocumentType
from erp_kernel.exceptions import (
    NotEligibleError,
    PreconditionError,
    TerminalStateError,
)
from erp_kernel.logging_config import get_logger

logger = get_logger("services.document_gateway")

DEFAULT_TIMEOUT = 10.0

DEFAULT_ENDPOINTS: Mapping[DocumentType, Mapping[str, str]] = {
    DocumentType.MEMO: {
        "fetch": "/memos/{id}",
        "list_for_user": "/memos/user/{user_id}",
        "approve": "/memos/{id}/approve",
        "reject": "/memos/{id}/reject",
        "pay": "/memos/{id}/pay",
        "acknowledge": "/memos/{id}/acknowledge",
    },
    DocumentType.LEAVE: {
        "fetch": "/leave/{id}",
        "list_for_user": "/leave/user/{user_id}",
        "approve": "/leave/{id}/approve",
        "reject": "/leave/{id}/reject",
    },
    DocumentType.REQUISITION: {
        "fetch": "/requisitions/{id}",
        "list_for_user": "/requisitions/user/{user_id}",
        "approve": "/requisitions/{id}/approve",
        "reject": "/requisitions/{id}/reject",
    },
}

_REFUSED = frozenset({400, 403})
_CONFLICT = 409


def _unwrap(body: Any) -> Any:
    # Single-record routes answer {"success": true, "data": {...}}.
    if isinstance(body, Mapping) and "data" in body:
        return body["data"]
    return body


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or ""
    if isinstance(body, Mapping):
        return str(body.get("message") or body.get("error") or "")
    return ""


class DocumentGateway:
    """Thin ``requests`` client over the backend document routes.

    Args:
        base_url: API root, e.g. ``http://localhost:7000/api``.
        session: Optional ``requests.Session``; one is created if omitted.
        timeout: Per-request timeout in seconds.
        endpoints: Route templates keyed by document type then action.
            Templates use ``{id}`` and ``{user_id}`` placeholders.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        endpoints: Mapping[DocumentType | str, Mapping[str, str]] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._endpoints = {
            DocumentType.parse(doc_type): dict(routes)
            for doc_type, routes in (endpoints or DEFAULT_ENDPOINTS).items()
        }

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch(self, document_type: DocumentType | str, document_id: Any) -> dict[str, Any]:
        """Return the raw record for one document."""
        url = self._url(document_type, "fetch", document_id, id=document_id)
        return _unwrap(self._request("GET", url, document_id))

    def list_for_user(
        self,
        document_type: DocumentType | str,
        user_id: Any,
        role: str | None = None,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """Return the raw records visible to ``user_id``."""
        url = self._url(document_type, "list_for_user", None, user_id=user_id)
        params = {k: v for k, v in (("role", role), ("status", status)) if v is not None}
        body = _unwrap(self._request("GET", url, None, params=params or None))
        if body is None:
            return []
        if not isinstance(body, list):
            logger.warning(
                "gateway_unexpected_list_body",
                extra={"url": url, "body_type": type(body).__name__},
            )
            return []
        return body

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def send_approve(
        self,
        document_type: DocumentType | str,
        document_id: Any,
        user_id: Any,
        role: str,
        department: str | None = None,
    ) -> Any:
        payload: dict[str, Any] = {"user_id": user_id, "role": role}
        if department is not None:
            payload["department"] = department
        url = self._url(document_type, "approve", document_id, id=document_id)
        return self._request("POST", url, document_id, acting_role=role, json=payload)

    def send_reject(
        self,
        document_type: DocumentType | str,
        document_id: Any,
        user_id: Any,
        role: str | None = None,
    ) -> Any:
        payload: dict[str, Any] = {"userId": user_id}
        if role is not None:
            payload["role"] = role
        url = self._url(document_type, "reject", document_id, id=document_id)
        return self._request("POST", url, document_id, acting_role=role, json=payload)

    def send_pay(self, document_id: Any, user_id: Any, role: str | None = None) -> Any:
        url = self._url(DocumentType.MEMO, "pay", document_id, id=document_id)
        return self._request(
            "POST", url, document_id, acting_role=role, json={"user_id": user_id},
        )

    def send_acknowledgment(self, document_id: Any, user_id: Any) -> Any:
        url = self._url(DocumentType.MEMO, "acknowledge", document_id, id=document_id)
        return self._request("POST", url, document_id, json={"user_id": user_id})

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _url(
        self,
        document_type: DocumentType | str,
        action: str,
        document_id: Any,
        **params: Any,
    ) -> str:
        doc_type = DocumentType.parse(document_type)
        template = self._endpoints.get(doc_type, {}).get(action)
        if template is None:
            raise PreconditionError(
                str(document_id), f"no {action!r} route for {doc_type.value} documents",
            )
        return self._base_url + template.format(**params)

    def _request(
        self,
        method: str,
        url: str,
        document_id: Any,
        acting_role: str | None = None,
        **kwargs: Any,
    ) -> Any:
        response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        logger.debug(
            "gateway_request",
            extra={"method": method, "url": url, "status_code": response.status_code},
        )

        if response.status_code in _REFUSED:
            raise NotEligibleError(
                str(document_id), str(acting_role or ""), reason=_error_message(response),
            )
        if response.status_code == _CONFLICT:
            raise TerminalStateError(str(document_id), _error_message(response) or "conflict")
        response.raise_for_status()

        if not response.content:
            return None
        return response.json()
