# campus_sdk/models/__init__.py
"""
Collection schema definitions.

- PLATFORM_SCHEMAS: the eighteen collections every deployment registers
- ADMINISTRATION_SCHEMAS: academic/financial/analytics collections,
  registered when ENABLE_EXTENDED_COLLECTIONS is on
"""
from .platform import PLATFORM_SCHEMAS
from .administration import ADMINISTRATION_SCHEMAS


def collection_schemas(include_administration: bool = False) -> dict:
    """The complete schema map handed to the SchemaRegistry at startup."""
    schemas = dict(PLATFORM_SCHEMAS)
    if include_administration:
        schemas.update(ADMINISTRATION_SCHEMAS)
    return schemas
