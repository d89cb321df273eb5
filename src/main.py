"""
Unified Audit Log Investigation Pipeline

Main orchestration module: loads a case directory of audit exports, filters,
classifies and summarizes the events, and writes one self-contained HTML report.
"""

import sys
import logging
from enum import Enum
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import click

# Add src to path
sys.path.insert(0, str(Path(__file__).parent))

from utils.config_loader import ConfigLoader, CaseConfig, DEFAULT_CONFIG, buildCaseConfig
from utils.logger import setupLogging, attachCaseLog, detachCaseLog
from utils.metrics import RunMetrics
from ingestion.base import CaseDirectoryError
from ingestion.record_loader import RecordLoader, NoDataLoadedError
from filtering.event_filter import EventFilter
from classification.rules import loadRuleSet
from classification.classifier import Classifier
from reporting.aggregator import EventAggregator
from reporting.cards import CardRenderer, resolveTimezone, formatLocalTimestamp
from reporting.assembler import ReportAssembler
from reporting.document import ReportMetadata
from reporting.html_writer import HtmlReportWriter


class RunStatus(Enum):
    SUCCESS = 0
    ERROR = 1
    WARNING = 2


class InvestigationPipeline:
    """
    Main pipeline orchestrator.

    Coordinates:
    1. Loading and normalizing the case directory
    2. Optional record-type, operation and free-text filtering
    3. Workload and intent classification
    4. Aggregation, card rendering and report assembly
    5. Writing the HTML report
    """

    def __init__(self, caseConfig: CaseConfig):
        """
        Initialize the pipeline.

        Args:
            caseConfig: Resolved run context

        Raises:
            FileNotFoundError: If a configured rules file is missing
            ValueError: If the rules file or time zone is invalid
        """
        self.caseConfig = caseConfig
        self.logger = logging.getLogger(self.__class__.__name__)
        self.metrics = RunMetrics()

        self.logger.info("Initializing pipeline components...")

        try:
            self.zone = resolveTimezone(caseConfig.timezone)
        except ValueError as e:
            self.logger.error(f"Failed to resolve report time zone: {e}")
            raise

        try:
            self.classifier = Classifier(loadRuleSet(caseConfig.rulesFile))
        except (FileNotFoundError, ValueError) as e:
            self.logger.error(f"Failed to load classification rules: {e}")
            raise

        self.loader = RecordLoader(caseConfig, self.metrics)
        self.eventFilter = EventFilter(
            recordType=caseConfig.recordTypeFilter,
            operation=caseConfig.operationFilter,
            searchText=caseConfig.searchFilter
        )
        self.aggregator = EventAggregator(caseConfig.topN)
        self.cardRenderer = CardRenderer(self.zone)
        self.assembler = ReportAssembler(caseConfig.reportTitle, self.classifier.workloadLabels, self.zone)
        self.writer = HtmlReportWriter()

        self.logger.info("Pipeline initialized successfully")

    def run(self, generatedAt: Optional[datetime] = None) -> RunStatus:
        """
        Run the pipeline once against the case directory.

        Args:
            generatedAt: Generation timestamp shown in the report (default: now)

        Returns:
            SUCCESS when a report was written, WARNING when there was nothing
            to report, ERROR when the run had to abort
        """
        caseLog = self._attachCaseLog()

        try:
            return self._execute(generatedAt)
        finally:
            self.metrics.log_metrics()
            if caseLog is not None:
                detachCaseLog(caseLog)

    def _execute(self, generatedAt: Optional[datetime]) -> RunStatus:
        self.logger.info(f"Starting investigation run for {self.caseConfig.caseDirectory}")

        # Step 1: Load
        try:
            events = self.loader.loadAll()
        except (CaseDirectoryError, NoDataLoadedError) as e:
            self.logger.error(f"Run aborted: {e}")
            self.metrics.record_error('pipeline')
            return RunStatus.ERROR

        if not events:
            self.logger.warning("No events loaded from the case directory; report not generated")
            return RunStatus.WARNING

        # Step 2: Filter
        events = self.eventFilter.apply(events)
        self.metrics.recordFiltered(len(events))

        if not events:
            self.logger.warning(
                f"No events after filtering [{self.eventFilter.describe()}]; report not generated"
            )
            return RunStatus.WARNING

        # Step 3: Classify
        events = self.classifier.classifyAll(events)
        for event in events:
            self.metrics.recordClassified(event.workload)

        # Step 4: Summarize, render and assemble
        summary = self.aggregator.summarize(events)
        cards = self.cardRenderer.renderAll(events)
        document = self.assembler.assemble(
            summary,
            cards,
            self._buildMetadata(generatedAt),
            retrievalPartial=self.loader.retrievalPartial(),
            failedFiles=self.metrics.failedFiles
        )

        # Step 5: Write
        reportPath = self.caseConfig.reportPath
        try:
            self.writer.write(document, reportPath)
        except OSError as e:
            self.logger.error(f"Failed to write report to {reportPath}: {e}")
            self.metrics.record_error('report')
            return RunStatus.ERROR

        self.metrics.recordReportWritten()
        if document.partial:
            self.logger.warning(f"Report {reportPath} was generated from PARTIAL DATA")

        self.logger.info("Pipeline execution completed")
        return RunStatus.SUCCESS

    def _buildMetadata(self, generatedAt: Optional[datetime]) -> ReportMetadata:
        generatedAt = generatedAt or datetime.now(timezone.utc)
        if generatedAt.tzinfo is None:
            generatedAt = generatedAt.replace(tzinfo=timezone.utc)

        return ReportMetadata(
            caseId=self.caseConfig.caseId,
            targetUser=self.caseConfig.targetUser,
            startDate=self.caseConfig.startDate,
            endDate=self.caseConfig.endDate,
            generatedAt=formatLocalTimestamp(generatedAt, self.zone),
            filterDescription=self.eventFilter.describe(),
            sourceDirectory=str(self.caseConfig.caseDirectory)
        )

    def _attachCaseLog(self) -> Optional[logging.Handler]:
        logPath = Path(self.caseConfig.logPath)
        caseDirectory = Path(self.caseConfig.caseDirectory)

        # Never create a missing case directory just to hold its log
        if caseDirectory in logPath.parents and not caseDirectory.is_dir():
            self.logger.warning(f"Case log not opened, case directory is missing: {caseDirectory}")
            return None

        try:
            return attachCaseLog(logPath)
        except OSError as e:
            self.logger.warning(f"Case log {logPath} could not be opened: {e}")
            return None

    def get_status(self) -> Dict[str, Any]:
        """
        Get current pipeline status.

        Returns:
            Status dictionary
        """
        return {
            'caseDirectory': str(self.caseConfig.caseDirectory),
            'reportPath': str(self.caseConfig.reportPath),
            'filters': self.eventFilter.describe(),
            'metrics': self.metrics.getMetrics()
        }


@click.command()
@click.option(
    '--config',
    'config_path',
    default=None,
    help='Path to configuration file (optional)'
)
@click.option('--case-dir', default=None, help='Case directory holding the audit_*.json exports')
@click.option('--case-id', default=None, help='Case identifier shown in the report header')
@click.option('--target-user', default=None, help='User under investigation')
@click.option('--start-date', default=None, help='Requested start of the retrieval window')
@click.option('--end-date', default=None, help='Requested end of the retrieval window')
@click.option('--record-type', default=None, help='Only include events of this record type')
@click.option('--operation', default=None, help='Only include events with this operation')
@click.option('--search', default=None, help='Only include events whose content contains this text')
@click.option(
    '--partial',
    is_flag=True,
    help='Mark the retrieval as incomplete (report carries a PARTIAL DATA banner)'
)
@click.option('--output', default=None, help='Report output path (default: <case dir>/report.html)')
@click.option('--timezone', 'timezone_name', default=None, help='IANA time zone for displayed times (default: local)')
@click.option('--top-n', default=None, type=int, help='Number of rows in the top-N summary tables')
def cli(config_path, case_dir, case_id, target_user, start_date, end_date, record_type,
        operation, search, partial, output, timezone_name, top_n):
    """Unified Audit Log Investigation Report"""

    try:
        if config_path:
            configLoader = ConfigLoader(config_path)
            config = configLoader.load()
            if not configLoader.validate():
                raise ValueError(f"Invalid configuration: {config_path}")
        else:
            config = dict(DEFAULT_CONFIG)

        setupLogging(config)

        caseConfig = buildCaseConfig(config, overrides={
            'caseDirectory': case_dir,
            'caseId': case_id,
            'targetUser': target_user,
            'startDate': start_date,
            'endDate': end_date,
            'recordTypeFilter': record_type,
            'operationFilter': operation,
            'searchFilter': search,
            'retrievalPartial': True if partial else None,
            'outputPath': output,
            'timezone': timezone_name,
            'topN': top_n
        })

        pipeline = InvestigationPipeline(caseConfig)
        status = pipeline.run()

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(RunStatus.ERROR.value)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(RunStatus.ERROR.value)

    sys.exit(status.value)


if __name__ == '__main__':
    cli()
