"""
Configuration schema (``erp_config.schema``).

Frozen dataclasses mirroring the YAML layout of a configuration set.
Values stay close to their YAML form (strings, tuples); translation into
kernel types happens in ``erp_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChainDef:
    """YAML-authored chains for one document type.

    ``departments`` pairs a lower-case department key (``"*"`` for the
    fallback) with its ordered approver roles.
    """

    document_type: str
    departments: tuple[tuple[str, tuple[str, ...]], ...] = ()


@dataclass(frozen=True)
class EndpointDef:
    """REST route templates for one document type, keyed by action."""

    document_type: str
    routes: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class GatewayDef:
    """Settings for the HTTP gateway to the ERP backend."""

    timeout_seconds: float = 10.0
    endpoints: tuple[EndpointDef, ...] = ()


@dataclass(frozen=True)
class ApprovalConfigurationSet:
    """A complete, loaded (not yet validated) configuration set."""

    name: str
    version: int = 1
    chains: tuple[ChainDef, ...] = ()
    executive_aliases: tuple[str, ...] = ("executive", "ict")
    chairman_role: str = "chairman"
    payment_role: str = "finance"
    chairman_override: bool = True
    creator_waits_for_payment: bool = False
    payment_step_types: tuple[str, ...] = ("memo",)
    gateway: GatewayDef = GatewayDef()
    checksum: str = ""
