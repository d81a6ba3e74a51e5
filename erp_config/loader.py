"""
Configuration Loader (``erp_config.loader``).

Responsibility
--------------
Loads the approval-routing YAML file and parses it into the frozen
``erp_config.schema`` dataclasses.  Build/test tooling: runtime callers go
through ``erp_config.get_active_config()``.

Architecture position
---------------------
**Config layer**.  No dependency on kernel, engines or services.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong shapes (a chain that is not a list, a non-mapping section, a
  switch that is not a YAML boolean)
  -> ``ValueError`` with the offending key in the message.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from erp_config.schema import (
    ApprovalConfigurationSet,
    ChainDef,
    EndpointDef,
    GatewayDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _string_tuple(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(f"{where}: expected a list, got {type(value).__name__}")
    return tuple(str(item).strip().lower() for item in value)


def _flag(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected true or false, got {value!r}")
    return value


def parse_chain(document_type: str, data: Any) -> ChainDef:
    """Parse the department table of one document type."""
    table = _require_mapping(data, f"chains.{document_type}")
    departments = tuple(
        (
            str(dept).strip().lower(),
            _string_tuple(roles, f"chains.{document_type}.{dept}"),
        )
        for dept, roles in table.items()
    )
    return ChainDef(document_type=str(document_type).strip().lower(), departments=departments)


def parse_endpoints(document_type: str, data: Any) -> EndpointDef:
    routes = _require_mapping(data, f"gateway.endpoints.{document_type}")
    return EndpointDef(
        document_type=str(document_type).strip().lower(),
        routes=tuple((str(action), str(template)) for action, template in routes.items()),
    )


def parse_gateway(data: Any) -> GatewayDef:
    section = _require_mapping(data, "gateway")
    endpoints = _require_mapping(section.get("endpoints"), "gateway.endpoints")
    return GatewayDef(
        timeout_seconds=float(section.get("timeout_seconds", 10.0)),
        endpoints=tuple(parse_endpoints(t, routes) for t, routes in endpoints.items()),
    )


def parse_configuration(data: dict[str, Any], name: str = "default") -> ApprovalConfigurationSet:
    """Build an ``ApprovalConfigurationSet`` from the decoded YAML document."""
    chains = _require_mapping(data.get("chains"), "chains")
    return ApprovalConfigurationSet(
        name=str(data.get("name", name)),
        version=int(data.get("version", 1)),
        chains=tuple(parse_chain(t, table) for t, table in chains.items()),
        executive_aliases=_string_tuple(
            data.get("executive_aliases", ["executive", "ict"]), "executive_aliases",
        ),
        chairman_role=str(data.get("chairman_role", "chairman")).strip().lower(),
        payment_role=str(data.get("payment_role", "finance")).strip().lower(),
        chairman_override=_flag(data, "chairman_override", True),
        creator_waits_for_payment=_flag(data, "creator_waits_for_payment", False),
        payment_step_types=_string_tuple(
            data.get("payment_step_types", ["memo"]), "payment_step_types",
        ),
        gateway=parse_gateway(data.get("gateway")),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute a deterministic SHA-256 checksum for configuration data.

    Keys are sorted, so the checksum is independent of mapping order.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_approval_config(path: Path) -> ApprovalConfigurationSet:
    """Load and parse one configuration file."""
    return parse_configuration(load_yaml_file(path), name=path.stem)
