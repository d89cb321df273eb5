"""
Record Normalization Module

Flattens raw audit records into a uniform in-memory event representation.

Features:
- Second-pass parsing of string-encoded payloads
- Field mapping across export formats
- Tolerant timestamp parsing (UTC)
"""

from .schema import NormalizedEvent, ValueKind, describePayload
from .normalizer import RecordNormalizer
from .field_mapper import FieldMapper

__all__ = [
    'NormalizedEvent',
    'ValueKind',
    'describePayload',
    'RecordNormalizer',
    'FieldMapper',
]
