"""
Configuration Validator (``erp_config.validator``).

Responsibility
--------------
Structural checks on a loaded ``ApprovalConfigurationSet`` before it is
bridged into a kernel ``ChainPolicy``.  Errors block activation; warnings
are reported but do not.

Checks
------
* Every chain names a known document type and every known type has a
  chain with a ``"*"`` fallback.
* Chains are non-empty and contain no duplicate role once executive
  aliases are collapsed (``ict_executive`` is ``executive``; the rewrite
  is reported as a warning).
* With the chairman override on, the chairman role appears in each chain
  (warning otherwise: the override is then inert for that chain).
* Every payment-step document type routes through the payment role.
* Endpoint actions are known and route templates contain ``{id}`` or
  ``{user_id}``; the timeout is positive.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from erp_config.schema import ApprovalConfigurationSet
from erp_kernel.domain.approval import canonical_role

KNOWN_DOCUMENT_TYPES = frozenset({"memo", "leave", "requisition"})

KNOWN_ENDPOINT_ACTIONS = frozenset({
    "fetch", "list_for_user", "approve", "reject", "pay", "acknowledge",
})

FALLBACK_DEPARTMENT = "*"


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_chains(config: ApprovalConfigurationSet, result: ConfigValidationResult) -> None:
    seen_types: set[str] = set()
    payment_types = set(config.payment_step_types)

    for chain_def in config.chains:
        doc_type = chain_def.document_type
        if doc_type not in KNOWN_DOCUMENT_TYPES:
            result.add_error(f"chains: unknown document type {doc_type!r}")
            continue
        if doc_type in seen_types:
            result.add_error(f"chains: document type {doc_type!r} defined twice")
        seen_types.add(doc_type)

        departments = dict(chain_def.departments)
        if FALLBACK_DEPARTMENT not in departments:
            result.add_error(f"chains.{doc_type}: missing '*' fallback chain")

        for dept, raw_roles in chain_def.departments:
            where = f"chains.{doc_type}.{dept}"
            if not raw_roles:
                result.add_error(f"{where}: chain is empty")
                continue
            roles = [canonical_role(r, config.executive_aliases) for r in raw_roles]
            for raw, role in zip(raw_roles, roles):
                if raw != role:
                    result.add_warning(f"{where}: role {raw!r} is read as {role!r}")
            duplicates = sorted({r for r in roles if roles.count(r) > 1})
            if duplicates:
                result.add_error(f"{where}: duplicate roles {duplicates}")
            if config.chairman_override and config.chairman_role not in roles:
                result.add_warning(
                    f"{where}: chairman override is on but {config.chairman_role!r} "
                    "is not in the chain"
                )
            if doc_type in payment_types and config.payment_role not in roles:
                result.add_error(
                    f"{where}: payment step requires {config.payment_role!r} in the chain"
                )

    for missing in sorted(KNOWN_DOCUMENT_TYPES - seen_types):
        result.add_error(f"chains: no chain configured for {missing!r}")

    for doc_type in sorted(payment_types - KNOWN_DOCUMENT_TYPES):
        result.add_error(f"payment_step_types: unknown document type {doc_type!r}")


def validate_gateway(config: ApprovalConfigurationSet, result: ConfigValidationResult) -> None:
    if config.gateway.timeout_seconds <= 0:
        result.add_error("gateway.timeout_seconds must be positive")

    for endpoint in config.gateway.endpoints:
        if endpoint.document_type not in KNOWN_DOCUMENT_TYPES:
            result.add_error(
                f"gateway.endpoints: unknown document type {endpoint.document_type!r}"
            )
            continue
        for action, template in endpoint.routes:
            where = f"gateway.endpoints.{endpoint.document_type}.{action}"
            if action not in KNOWN_ENDPOINT_ACTIONS:
                result.add_error(f"{where}: unknown action")
            elif "{id}" not in template and "{user_id}" not in template:
                result.add_error(f"{where}: route has no {{id}} or {{user_id}} placeholder")


def validate_configuration(config: ApprovalConfigurationSet) -> ConfigValidationResult:
    """Run every structural check and collect the findings."""
    result = ConfigValidationResult()

    if not config.executive_aliases:
        result.add_error("executive_aliases must not be empty")
    if not config.chairman_role:
        result.add_error("chairman_role must not be empty")
    if not config.payment_role:
        result.add_error("payment_role must not be empty")

    validate_chains(config, result)
    validate_gateway(config, result)
    return result
