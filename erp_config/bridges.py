"""
Bridges between config schema objects and kernel/service inputs.

The kernel never imports ``erp_config``.  These functions translate the
loaded YAML dataclasses into the types the engines and the gateway take:
a ``ChainPolicy`` and a per-document-type endpoint table.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from erp_config.schema import ApprovalConfigurationSet
from erp_kernel.domain.approval import ChainPolicy, DocumentType


def build_chain_policy(config: ApprovalConfigurationSet) -> ChainPolicy:
    """Build the kernel ``ChainPolicy`` from a validated configuration set."""
    chains = {
        DocumentType.parse(chain_def.document_type): {
            dept: tuple(roles) for dept, roles in chain_def.departments
        }
        for chain_def in config.chains
    }
    return ChainPolicy(
        chains=chains,
        executive_aliases=tuple(config.executive_aliases),
        chairman_role=config.chairman_role,
        payment_role=config.payment_role,
        chairman_override=config.chairman_override,
        creator_waits_for_payment=config.creator_waits_for_payment,
        payment_step_types=frozenset(
            DocumentType.parse(t) for t in config.payment_step_types
        ),
    )


def build_endpoints(
    config: ApprovalConfigurationSet,
) -> Mapping[DocumentType, Mapping[str, str]]:
    """Route templates keyed by document type, then by action name."""
    return MappingProxyType({
        DocumentType.parse(endpoint.document_type): MappingProxyType(dict(endpoint.routes))
        for endpoint in config.gateway.endpoints
    })
