# campus_sdk/schemas/records.py
"""
Pydantic schemas for the generic collection endpoints.
Record bodies stay free-form dicts: their shape is enforced by the
collection schema in the SchemaRegistry, not here.
"""
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class BulkUpdateIn(BaseModel):
    """
    Request model for bulk updates.
    Every item is a partial record that must carry its `id`.
    """
    items: List[Dict[str, Any]] = Field(min_length=1)
