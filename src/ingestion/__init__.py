"""
Record Ingestion Module

Loads audit records exported by the retrieval step into the pipeline:
- Case directory of per-day JSON exports (object or array per file)
- Per-file failure isolation
- Retrieval status (partial/complete) pass-through
"""

from .base import BaseRecordSource, CaseDirectoryError
from .json_directory import JsonDirectorySource
from .record_loader import RecordLoader, NoDataLoadedError

__all__ = [
    'BaseRecordSource',
    'CaseDirectoryError',
    'JsonDirectorySource',
    'RecordLoader',
    'NoDataLoadedError',
]
