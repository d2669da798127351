"""
app/mappers package marker.
"""

from app.mappers.stream_failure_mapper import (
    draft_to_record,
    entity_to_row,
    normalize_payload,
    normalize_row,
    parse_draft_payload,
)

__all__ = [
    "draft_to_record",
    "entity_to_row",
    "normalize_payload",
    "normalize_row",
    "parse_draft_payload",
]
