"""
Utilities Module

Common utilities for configuration, logging and run metrics.
"""

from .config_loader import ConfigLoader, CaseConfig, buildCaseConfig
from .logger import setupLogging, attachCaseLog, detachCaseLog
from .metrics import RunMetrics

__all__ = [
    'ConfigLoader',
    'CaseConfig',
    'buildCaseConfig',
    'setupLogging',
    'attachCaseLog',
    'detachCaseLog',
    'RunMetrics',
]
