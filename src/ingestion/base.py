# Base record source class

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Iterator, Tuple
import logging

from utils.config_loader import CaseConfig
from utils.metrics import RunMetrics


class CaseDirectoryError(Exception):
    """The case directory is missing or cannot be read."""


class BaseRecordSource(ABC):
    def __init__(self, config: CaseConfig, metrics: Optional[RunMetrics] = None):

        self.config = config
        self.metrics = metrics or RunMetrics()
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def fetchRecords(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        """Yield (source name, raw record) pairs."""
        pass

    @abstractmethod
    def retrievalPartial(self) -> bool:
        pass

    def handleError(self, error: Exception, context: str) -> None:
        self.logger.error(f"Error in {context}: {str(error)}")
