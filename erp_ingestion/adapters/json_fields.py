"""
JSON-or-native field parsing.

The backend returns ``acknowledgments``, ``recipients`` and ``cc`` either
as JSON-encoded strings or as already-decoded lists, depending on the
route.  Everything here degrades to an empty list on malformed input and
never raises.
"""

from __future__ import annotations

import json
from typing import Any

from erp_kernel.logging_config import get_logger

logger = get_logger("ingestion.json_fields")


def safe_parse_json_list(value: Any, field_name: str = "field") -> list[Any]:
    """Return ``value`` as a list, decoding JSON text when needed.

    None, empty strings, malformed JSON and non-list payloads all yield
    ``[]``.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (bytes, bytearray)):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("json_field_undecodable", extra={"field": field_name})
            return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(
                "json_field_malformed",
                extra={"field": field_name, "raw_value": text[:200]},
            )
            return []
        if isinstance(decoded, list):
            return decoded
        logger.warning(
            "json_field_not_a_list",
            extra={"field": field_name, "decoded_type": type(decoded).__name__},
        )
        return []

    logger.warning(
        "json_field_unsupported_type",
        extra={"field": field_name, "value_type": type(value).__name__},
    )
    return []
