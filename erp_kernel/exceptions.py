"""
Typed Exception Hierarchy for the ERP Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Approval errors are shown to users ("you cannot approve this yet") and are
also produced from backend responses when a race between two approvers is
lost. Callers must be able to tell them apart without parsing messages:
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - RIGHT way:
    try:
        doc = approve(doc, "gmd", user_id)
    except NotEligibleError as e:
        notify_user(f"Waiting for {e.expected_role}")
    except TerminalStateError as e:
        notify_user(f"Document is already {e.status}")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ErpKernelError (base)
    |
    +-- ApprovalError
        +-- ConfigurationError
        +-- NotEligibleError
        +-- TerminalStateError
        +-- PreconditionError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category  | Code                 | When Raised
----------|----------------------|---------------------------------------------
Approval  | CONFIGURATION_ERROR  | Unknown document type / chain combination
          | NOT_ELIGIBLE         | Acting role is not next in the chain
          | TERMINAL_STATE       | Document already rejected / completed
          | PRECONDITION_FAILED  | Pay before full approval, already paid,
          |                      | self-acknowledgment

All of these are raised synchronously, before any network call is made.
Network failures are NOT part of this hierarchy; they propagate from the
HTTP layer as ``requests`` exceptions.
===============================================================================
"""


class ErpKernelError(Exception):
    """
    Base exception for all ERP kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ERP_KERNEL_ERROR"


# Approval-related exceptions


class ApprovalError(ErpKernelError):
    """Base exception for approval-routing errors."""

    code: str = "APPROVAL_ERROR"


class ConfigurationError(ApprovalError):
    """No approval chain is defined for the given document type/department."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, document_type: str, department: str | None = None):
        self.document_type = document_type
        self.department = department
        super().__init__(
            f"No approval chain configured for document type "
            f"{document_type!r} (department={department!r})"
        )


class NotEligibleError(ApprovalError):
    """
    The acting role may not act on the document right now.

    Raised when the role is not the next one in the chain (and the chairman
    override does not apply), or when the backend refuses an action the
    client believed eligible.
    """

    code: str = "NOT_ELIGIBLE"

    def __init__(
        self,
        document_id: str,
        acting_role: str,
        expected_role: str | None = None,
        reason: str = "",
    ):
        self.document_id = document_id
        self.acting_role = acting_role
        self.expected_role = expected_role
        self.reason = reason
        message = f"Role {acting_role!r} cannot act on document {document_id}"
        if expected_role is not None:
            message += f": waiting for {expected_role}"
        elif reason:
            message += f": {reason}"
        super().__init__(message)


class TerminalStateError(ApprovalError):
    """Document is rejected or completed; no further approve/reject allowed."""

    code: str = "TERMINAL_STATE"

    def __init__(self, document_id: str, status: str):
        self.document_id = document_id
        self.status = status
        super().__init__(
            f"Document {document_id} is in terminal state {status!r}"
        )


class PreconditionError(ApprovalError):
    """An operation's precondition does not hold (e.g. pay before approval)."""

    code: str = "PRECONDITION_FAILED"

    def __init__(self, document_id: str, reason: str):
        self.document_id = document_id
        self.reason = reason
        super().__init__(f"Precondition failed for document {document_id}: {reason}")
