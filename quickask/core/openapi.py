"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with tags metadata and documents the
shared error envelope, keeping documentation concerns out of the factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Questions",
        "description": "Rate-limited, moderated question answering.",
    },
    {
        "name": "Proxy",
        "description": "Generic REST proxy to configured upstream targets.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

ERROR_ENVELOPE_SCHEMA = {
    "type": "object",
    "properties": {
        "error": {
            "type": "object",
            "properties": {
                "code": {"type": "string"},
                "message": {"type": "string"},
                "request_id": {"type": "string", "nullable": True},
                "details": {"type": "object"},
            },
            "required": ["code", "message"],
        }
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the error schema.

    - Adds tags metadata if not present
    - Registers ``ErrorEnvelope`` under components.schemas
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("schemas", {}).setdefault("ErrorEnvelope", ERROR_ENVELOPE_SCHEMA)

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
