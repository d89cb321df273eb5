import logging
import sys
from pathlib import Path
from typing import Dict, Any
import json
from datetime import datetime


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):

    def __init__(self):
        fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        datefmt = '%Y-%m-%d %H:%M:%S'
        super().__init__(fmt=fmt, datefmt=datefmt)


class CaseLogFormatter(logging.Formatter):
    """Case log lines: timestamp, INFO/WARN/ERROR tag, message."""

    SEVERITY_TAGS = {
        'DEBUG': 'INFO',
        'INFO': 'INFO',
        'WARNING': 'WARN',
        'ERROR': 'ERROR',
        'CRITICAL': 'ERROR'
    }

    def __init__(self):
        super().__init__(datefmt='%Y-%m-%d %H:%M:%S')

    def format(self, record: logging.LogRecord) -> str:
        severity = self.SEVERITY_TAGS.get(record.levelname, record.levelname)
        line = f"{self.formatTime(record, self.datefmt)} [{severity}] {record.getMessage()}"
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setupLogging(config: Dict[str, Any]) -> None:
    logging_config = config.get('logging', {})

    log_level = logging_config.get('level', 'INFO')
    log_format = logging_config.get('format', 'text')  # json or text
    log_output = logging_config.get('output', 'stdout')  # file, stdout, or both
    log_file_path = logging_config.get('file_path', 'logs/audit_investigation.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))

    root_logger.handlers = []

    if log_format == 'json':
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    if log_output in ['file', 'both']:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if log_output in ['stdout', 'both']:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    root_logger.info("Logging configured successfully")


def attachCaseLog(log_path: Path) -> logging.Handler:
    """Append every INFO-and-above record of the run to the case log."""
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, mode='a', encoding='utf-8', errors='backslashreplace')
    handler.setLevel(logging.INFO)
    handler.setFormatter(CaseLogFormatter())

    root_logger = logging.getLogger()
    if root_logger.level == logging.NOTSET or root_logger.level > logging.INFO:
        root_logger.setLevel(logging.INFO)
    root_logger.addHandler(handler)
    return handler


def detachCaseLog(handler: logging.Handler) -> None:
    logging.getLogger().removeHandler(handler)
    handler.close()
