"""
Acknowledgment value type (``erp_kernel.domain.acknowledgment``).

A Memo of type ``report`` is acknowledged by its readers rather than
approved.  Each acknowledgment is an immutable record of who acted; the
roles that still have to act are kept separately on the memo
(``Memo.pending_acknowledgers``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Acknowledgment:
    """Record of a single acknowledgment. Immutable."""

    acknowledger_id: Any
    role: str | None = None
    department: str | None = None
    timestamp: datetime | None = None
    name: str | None = None

    def is_by(self, user_id: Any) -> bool:
        """True if this acknowledgment was made by ``user_id``.

        Backend ids arrive as ints while UI callers often hold strings, so
        both sides are compared in their string form.
        """
        if user_id is None or self.acknowledger_id is None:
            return False
        return str(self.acknowledger_id) == str(user_id)
