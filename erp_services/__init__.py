"""
erp_services -- I/O edge of the approval-routing system.

``DocumentGateway`` talks HTTP to the ERP backend; ``ApprovalWorkflowService``
composes it with the adapters and the pure engines.

Usage:
    from erp_config import get_active_config
    from erp_services import ApprovalWorkflowService, DocumentGateway

    config = get_active_config()
    gateway = DocumentGateway(
        "http://localhost:7000/api",
        timeout=config.gateway_timeout,
        endpoints=config.endpoints,
    )
    service = ApprovalWorkflowService(gateway, policy=config.chain_policy)
    memo = service.approve("memo", 42, user_id=7, role="finance")
"""

from erp_services.approval_workflow import ApprovalWorkflowService
from erp_services.document_gateway import DEFAULT_ENDPOINTS, DocumentGateway

__all__ = ["ApprovalWorkflowService", "DEFAULT_ENDPOINTS", "DocumentGateway"]
