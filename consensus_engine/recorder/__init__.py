"""
Recorder Module

Persistence boundary: serializes aggregation results and hands them to a store.
"""

from .store import AggregationRecord, BaseResultStore, JsonResultStore, decode_record, encode_record

__all__ = [
    "AggregationRecord",
    "BaseResultStore",
    "JsonResultStore",
    "decode_record",
    "encode_record"
]
