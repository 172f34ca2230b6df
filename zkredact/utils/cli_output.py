"""CLI JSON output wrapper.

Wraps command payloads with schema metadata (schema_id, schema_version,
producer, produced_at) so downstream tooling can detect format changes.
"""

from __future__ import annotations

import json
from typing import Any

from zkredact.utils.schema import build_schema_stamp


def json_response(
    schema_id: str,
    schema_version: int,
    **data: Any,
) -> str:
    """Create schema-wrapped JSON response for CLI output.

    Args:
        schema_id: Identifier for the output type (e.g., "proof_verify").
        schema_version: Integer version for backward compatibility.
        **data: Payload data to include in the response.

    Returns:
        JSON string with schema metadata and payload.

    Example:
        >>> json_response("proof_verify", 1, valid=True)
        {
          "schema_id": "proof_verify",
          "schema_version": 1,
          "producer": "zkredact-0.1.0",
          "produced_at": "2026-10-17T10:30:00+00:00",
          "valid": true
        }
    """
    stamp = build_schema_stamp(schema_id=schema_id, schema_version=schema_version)
    wrapped = stamp.apply(data)
    ordered = {
        "schema_id": wrapped.pop("schema_id"),
        "schema_version": wrapped.pop("schema_version"),
        "producer": wrapped.pop("producer"),
        "produced_at": wrapped.pop("produced_at"),
        **wrapped,
    }
    return json.dumps(ordered, indent=2, default=str)
