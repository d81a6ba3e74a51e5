"""
erp_config -- single public entrypoint for approval-routing configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns an ``ApprovalConfig``: the compiled
    chain policy, the gateway endpoint table and timeout, and the checksum
    of the YAML source.

Architecture position:
    Configuration -- sits above ``erp_kernel`` and below ``erp_services``.
    The kernel MUST NEVER import from ``erp_config``; ``bridges`` translate
    the loaded YAML into kernel types.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ValueError`` -- malformed shapes or failed structural validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``ERP_CONFIG_TRACE`` log entry with the config name, version, checksum
    and chain counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from erp_config.bridges import build_chain_policy, build_endpoints
from erp_config.loader import load_approval_config
from erp_config.validator import validate_configuration
from erp_kernel.domain.approval import ChainPolicy, DocumentType
from erp_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

DEFAULT_CONFIG_FILE = "approval_chains.yaml"


@dataclass(frozen=True)
class ApprovalConfig:
    """The runtime configuration artifact."""

    name: str
    version: int
    checksum: str
    chain_policy: ChainPolicy
    endpoints: Mapping[DocumentType, Mapping[str, str]]
    gateway_timeout: float
    warnings: tuple[str, ...] = ()


def get_active_config(
    config_dir: Path | None = None,
    filename: str = DEFAULT_CONFIG_FILE,
) -> ApprovalConfig:
    """Load, validate and compile the approval-routing configuration.

    Args:
        config_dir: Override path to the configuration sets directory.
            Defaults to erp_config/sets/.
        filename: Configuration file inside ``config_dir``.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ValueError: If configuration validation fails.
    """
    path = Path(config_dir or _DEFAULT_CONFIG_DIR) / filename
    config_set = load_approval_config(path)

    validation = validate_configuration(config_set)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )

    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={"detail": warning})

    config = ApprovalConfig(
        name=config_set.name,
        version=config_set.version,
        checksum=config_set.checksum,
        chain_policy=build_chain_policy(config_set),
        endpoints=build_endpoints(config_set),
        gateway_timeout=config_set.gateway.timeout_seconds,
        warnings=tuple(validation.warnings),
    )

    _logger.info(
        "ERP_CONFIG_TRACE",
        extra={
            "trace_type": "ERP_CONFIG_TRACE",
            "config_name": config.name,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "document_type_count": len(config.chain_policy.chains),
            "chain_count": sum(len(t) for t in config.chain_policy.chains.values()),
        },
    )
    return config


__all__ = ["ApprovalConfig", "DEFAULT_CONFIG_FILE", "get_active_config"]
