"""
Pytest fixtures for the approval-routing test suite.

Provides:
- Logging / log-context reset around every test
- A deterministic clock
- Document factories (memo, leave, requisition) with approval flags given
  as role lists
"""

from decimal import Decimal

import pytest

from erp_kernel.domain.approval import (
    DocumentStatus,
    Leave,
    Memo,
    Requisition,
)
from erp_kernel.domain.clock import DeterministicClock
from erp_kernel.logging_config import LogContext, reset_logging


@pytest.fixture(autouse=True)
def _reset_logging_state():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


def _flags(roles) -> dict[str, bool]:
    return {role: True for role in roles}


@pytest.fixture
def make_memo():
    def _make(
        id=1,
        created_by=100,
        department="Finance",
        approved=(),
        rejected=(),
        status=DocumentStatus.PENDING,
        **kwargs,
    ) -> Memo:
        return Memo(
            id=id,
            created_by=created_by,
            department=department,
            status=status,
            approvals=_flags(approved),
            rejections=_flags(rejected),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_leave():
    def _make(
        id=1,
        created_by=100,
        department="Operations",
        approved=(),
        rejected=(),
        status=DocumentStatus.PENDING,
        **kwargs,
    ) -> Leave:
        return Leave(
            id=id,
            created_by=created_by,
            department=department,
            status=status,
            approvals=_flags(approved),
            rejections=_flags(rejected),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_requisition():
    def _make(
        id=1,
        created_by=100,
        department="ICT",
        approved=(),
        rejected=(),
        status=DocumentStatus.PENDING,
        total_amount=Decimal("250000.00"),
        **kwargs,
    ) -> Requisition:
        return Requisition(
            id=id,
            created_by=created_by,
            department=department,
            status=status,
            approvals=_flags(approved),
            rejections=_flags(rejected),
            total_amount=total_amount,
            **kwargs,
        )

    return _make
