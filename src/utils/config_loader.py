"""
Configuration Loader

Loads configuration from YAML files with environment variable substitution and
resolves it into the explicit CaseConfig handed to each pipeline component.
"""

import yaml
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional
import re
import logging


DEFAULT_CONFIG: Dict[str, Any] = {
    'case': {},
    'ingestion': {
        'file_pattern': 'audit_*.json',
        'status_file': 'retrieval_status.json'
    },
    'classification': {},
    'filters': {},
    'report': {
        'title': 'Unified Audit Log Investigation',
        'top_n': 10
    },
    'logging': {
        'level': 'INFO',
        'format': 'text',
        'output': 'stdout',
        'case_log': 'case.log'
    }
}


class ConfigLoader:
    """
    Loads configuration from YAML files with environment variable support.

    Supports:
    - Environment variable substitution ${VAR_NAME}
    - Merging over the built-in defaults
    - Validation
    """

    def __init__(self, config_path: str):
        """
        Initialize config loader.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from file.

        Returns:
            Configuration dictionary merged over DEFAULT_CONFIG
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                content = f.read()

            # Substitute environment variables
            content = self._substituteEnvVars(content)

            loaded = yaml.safe_load(content) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Configuration root must be a mapping: {self.config_path}")

            self.config = mergeConfig(DEFAULT_CONFIG, loaded)

            self.logger.info(f"Configuration loaded from {self.config_path}")
            return self.config

        except Exception as e:
            self.logger.error(f"Error loading configuration: {e}")
            raise

    def _substituteEnvVars(self, content: str) -> str:
        """
        Substitute environment variables in format ${VAR_NAME}.

        Args:
            content: File content with variables

        Returns:
            Content with substituted values
        """
        pattern = r'\$\{([^}]+)\}'

        def replacer(match):
            var_name = match.group(1)
            value = os.environ.get(var_name)
            if value is None:
                self.logger.warning(f"Environment variable not found: {var_name}")
                return match.group(0)  # Keep original if not found
            return value

        return re.sub(pattern, replacer, content)

    def validate(self) -> bool:
        """
        Validate configuration structure.

        Returns:
            True if valid
        """
        required_sections = ['case', 'ingestion', 'report', 'logging']

        for section in required_sections:
            if not isinstance(self.config.get(section), dict):
                self.logger.error(f"Missing required configuration section: {section}")
                return False

        return True


def mergeConfig(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = mergeConfig(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class CaseConfig:
    """Resolved run context shared by every component of one pipeline run."""
    caseDirectory: Path
    caseId: Optional[str] = None
    targetUser: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    filePattern: str = 'audit_*.json'
    statusFile: str = 'retrieval_status.json'
    rulesFile: Optional[Path] = None
    recordTypeFilter: Optional[str] = None
    operationFilter: Optional[str] = None
    searchFilter: Optional[str] = None
    outputPath: Optional[Path] = None
    caseLogPath: Optional[Path] = None
    reportTitle: str = 'Unified Audit Log Investigation'
    topN: int = 10
    timezone: Optional[str] = None
    retrievalPartial: bool = False
    logging: Dict[str, Any] = field(default_factory=dict)

    @property
    def reportPath(self) -> Path:
        return self.outputPath or self.caseDirectory / 'report.html'

    @property
    def logPath(self) -> Path:
        return self.caseLogPath or self.caseDirectory / 'case.log'


def buildCaseConfig(
    config: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> CaseConfig:
    """
    Resolve a configuration dictionary plus invocation overrides into a CaseConfig.

    Overrides use the CaseConfig field names; None values are ignored so that
    unset CLI options fall back to the configuration file.

    Raises:
        ValueError: If no case directory is configured or top_n is invalid
    """
    config = mergeConfig(DEFAULT_CONFIG, config or {})
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    caseSection = config.get('case') or {}
    ingestionSection = config.get('ingestion') or {}
    classificationSection = config.get('classification') or {}
    filterSection = config.get('filters') or {}
    reportSection = config.get('report') or {}
    loggingSection = config.get('logging') or {}

    directory = overrides.get('caseDirectory', caseSection.get('directory'))
    if not directory:
        raise ValueError("No case directory configured (case.directory or --case-dir)")
    caseDirectory = Path(directory)

    def _optionalPath(value: Any) -> Optional[Path]:
        return Path(value) if value else None

    caseLog = loggingSection.get('case_log')
    caseLogPath = _optionalPath(overrides.get('caseLogPath'))
    if caseLogPath is None and caseLog:
        caseLogPath = Path(caseLog)
        if not caseLogPath.is_absolute():
            caseLogPath = caseDirectory / caseLogPath

    try:
        topN = int(overrides.get('topN', reportSection.get('top_n', 10)))
    except (TypeError, ValueError):
        raise ValueError(f"report.top_n must be an integer: {reportSection.get('top_n')!r}")
    if topN < 1:
        raise ValueError(f"report.top_n must be positive: {topN}")

    return CaseConfig(
        caseDirectory=caseDirectory,
        caseId=overrides.get('caseId', _text(caseSection.get('id'))),
        targetUser=overrides.get('targetUser', caseSection.get('target_user')),
        startDate=overrides.get('startDate', _text(caseSection.get('start_date'))),
        endDate=overrides.get('endDate', _text(caseSection.get('end_date'))),
        filePattern=ingestionSection.get('file_pattern') or 'audit_*.json',
        statusFile=ingestionSection.get('status_file') or 'retrieval_status.json',
        rulesFile=_optionalPath(overrides.get('rulesFile', classificationSection.get('rules_file'))),
        recordTypeFilter=_text(overrides.get('recordTypeFilter', filterSection.get('record_type'))),
        operationFilter=_text(overrides.get('operationFilter', filterSection.get('operation'))),
        searchFilter=_text(overrides.get('searchFilter', filterSection.get('search'))),
        outputPath=_optionalPath(overrides.get('outputPath', reportSection.get('output_path'))),
        caseLogPath=caseLogPath,
        reportTitle=reportSection.get('title') or 'Unified Audit Log Investigation',
        topN=topN,
        timezone=overrides.get('timezone', reportSection.get('timezone')),
        retrievalPartial=bool(overrides.get('retrievalPartial', False)),
        logging=dict(loggingSection)
    )


def _text(value: Any) -> Optional[str]:
    # YAML turns bare dates and numeric ids into date/int objects
    return str(value) if value is not None else None
