from typing import Iterator, List, Optional
import logging

from normalization.normalizer import RecordNormalizer
from normalization.schema import NormalizedEvent
from utils.config_loader import CaseConfig
from utils.metrics import RunMetrics

from .base import BaseRecordSource
from .json_directory import JsonDirectorySource


class NoDataLoadedError(Exception):
    """Every matched file failed to load."""


class RecordLoader:

    def __init__(
        self,
        config: CaseConfig,
        metrics: Optional[RunMetrics] = None,
        source: Optional[BaseRecordSource] = None
    ):
        self.config = config
        self.metrics = metrics or RunMetrics()
        self.logger = logging.getLogger(self.__class__.__name__)
        self.source = source or JsonDirectorySource(config, self.metrics)
        self.normalizer = RecordNormalizer()

    def iterEvents(self) -> Iterator[NormalizedEvent]:
        """
        Lazily yield one NormalizedEvent per raw record in the case directory.

        ingestionIndex increases monotonically across files so later stages
        can break timestamp ties in load order.

        Raises:
            CaseDirectoryError: If the case directory cannot be read
        """
        index = 0
        for sourceFile, record in self.source.fetchRecords():
            event = self.normalizer.normalize(record, sourceFile, index)
            index += 1

            self.metrics.recordRecordLoaded()
            if not event.payloadParsed:
                self.metrics.recordPayloadParseFailure()

            self.logger.info(f"Loaded {event.operation or 'record'} {event.recordId} from {sourceFile}")
            yield event

    def loadAll(self) -> List[NormalizedEvent]:
        """
        Materialize every event of the case.

        Raises:
            CaseDirectoryError: If the case directory cannot be read
            NoDataLoadedError: If files matched but none could be loaded
        """
        events = list(self.iterEvents())

        if self.metrics.files_matched and not self.metrics.files_loaded:
            raise NoDataLoadedError(
                f"All {self.metrics.files_matched} matched file(s) failed to load"
            )

        self.logger.info(
            f"Loaded {len(events)} event(s) from {self.metrics.files_loaded} file(s); "
            f"{self.metrics.files_failed} file(s) failed, "
            f"{self.metrics.payload_parse_failures} payload(s) unparsed"
        )
        return events

    def retrievalPartial(self) -> bool:
        return self.config.retrievalPartial or self.source.retrievalPartial()
