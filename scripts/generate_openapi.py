"""
Write one OpenAPI document covering every Tapcard service.

The frontend generates its TypeScript client from this file, so paths keep
the prefixes each service mounts them under.

    python -m scripts.generate_openapi > openapi.json
"""

import json

from services.analytics_service.app.main import app as analytics_app
from services.cards_service.app.main import app as cards_app
from services.payments_service.app.main import app as payments_app
from services.store_service.app.main import app as store_app

SERVICES = [
    ("cards", cards_app),
    ("analytics", analytics_app),
    ("store", store_app),
    ("payments", payments_app),
]


def merge_openapi_schemas() -> dict:
    combined = {
        "openapi": "3.1.0",
        "info": {
            "title": "Tapcard API",
            "description": "Cards, analytics, store and payment endpoints.",
            "version": "0.1.0",
        },
        "paths": {},
        "components": {"schemas": {}},
    }

    for name, app in SERVICES:
        schema = app.openapi()
        for path, operations in schema.get("paths", {}).items():
            if path == "/health":
                continue
            if path in combined["paths"]:
                raise ValueError(f"{name} redefines path {path}")
            combined["paths"][path] = operations

        # Shared schema names (e.g. ValidationError) are identical across apps
        for schema_name, definition in schema.get("components", {}).get("schemas", {}).items():
            combined["components"]["schemas"].setdefault(schema_name, definition)

    return combined


if __name__ == "__main__":
    print(json.dumps(merge_openapi_schemas(), indent=2))
