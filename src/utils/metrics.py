from typing import Dict, Any, List
from collections import defaultdict
from datetime import datetime
import logging


class RunMetrics:

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.reset()

    def reset(self) -> None:
        self.startTime = datetime.utcnow()

        self.files_matched = 0
        self.files_loaded = 0
        self.failedFiles: List[Dict[str, str]] = []

        self.records_loaded = 0
        self.payload_parse_failures = 0
        self.elements_skipped = 0

        self.events_after_filter = 0
        self.events_by_workload = defaultdict(int)

        self.report_written = False

        self.errors = defaultdict(int)

    @property
    def files_failed(self) -> int:
        return len(self.failedFiles)

    def recordFileMatched(self) -> None:
        self.files_matched += 1

    def recordFileLoaded(self) -> None:
        self.files_loaded += 1

    def recordFileFailed(self, fileName: str, reason: str) -> None:
        self.failedFiles.append({'file': fileName, 'reason': reason})

    def recordRecordLoaded(self) -> None:
        self.records_loaded += 1

    def recordPayloadParseFailure(self) -> None:
        self.payload_parse_failures += 1

    def recordElementSkipped(self) -> None:
        self.elements_skipped += 1

    def recordFiltered(self, count: int) -> None:
        self.events_after_filter = count

    def recordClassified(self, workload: str) -> None:
        self.events_by_workload[workload] += 1

    def recordReportWritten(self) -> None:
        self.report_written = True

    def record_error(self, component: str) -> None:
        self.errors[component] += 1

    def getMetrics(self) -> Dict[str, Any]:
        runtimeSeconds = (datetime.utcnow() - self.startTime).total_seconds()

        return {
            'runtimeSeconds': runtimeSeconds,
            'files': {
                'matched': self.files_matched,
                'loaded': self.files_loaded,
                'failed': self.files_failed,
                'failures': list(self.failedFiles)
            },
            'records': {
                'loaded': self.records_loaded,
                'payload_parse_failures': self.payload_parse_failures,
                'elements_skipped': self.elements_skipped
            },
            'events': {
                'after_filter': self.events_after_filter,
                'by_workload': dict(self.events_by_workload)
            },
            'report_written': self.report_written,
            'errors': dict(self.errors)
        }

    def log_metrics(self) -> None:
        metrics = self.getMetrics()

        self.logger.info("=== Run Metrics ===")
        self.logger.info(f"Runtime: {metrics['runtimeSeconds']:.2f} seconds")
        self.logger.info(
            f"Files matched: {metrics['files']['matched']}, "
            f"loaded: {metrics['files']['loaded']}, failed: {metrics['files']['failed']}"
        )
        self.logger.info(f"Records loaded: {metrics['records']['loaded']}")
        self.logger.info(f"Unparsed payloads: {metrics['records']['payload_parse_failures']}")
        self.logger.info(f"Events after filtering: {metrics['events']['after_filter']}")
        self.logger.info(f"Report written: {metrics['report_written']}")

        if metrics['errors']:
            self.logger.warning(f"Errors: {metrics['errors']}")
