"""
app/connectors package marker.
"""

from app.connectors.record_store_http import HttpRecordStore, build_query_params

__all__ = [
    "HttpRecordStore",
    "build_query_params",
]
