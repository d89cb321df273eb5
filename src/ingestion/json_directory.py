# Case directory of per-day JSON audit exports

from typing import Dict, Any, Iterator, List, Tuple
from pathlib import Path
import json

from .base import BaseRecordSource, CaseDirectoryError


class JsonDirectorySource(BaseRecordSource):

    def listFiles(self) -> List[Path]:
        directory = Path(self.config.caseDirectory)

        if not directory.exists():
            raise CaseDirectoryError(f"Case directory not found: {directory}")
        if not directory.is_dir():
            raise CaseDirectoryError(f"Case path is not a directory: {directory}")

        try:
            files = sorted(
                path for path in directory.glob(self.config.filePattern)
                if path.is_file() and path.name != self.config.statusFile
            )
        except OSError as e:
            raise CaseDirectoryError(f"Cannot read case directory {directory}: {e}") from e

        return files

    def fetchRecords(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        files = self.listFiles()
        self.logger.info(
            f"Found {len(files)} file(s) matching '{self.config.filePattern}' "
            f"in {self.config.caseDirectory}"
        )

        for path in files:
            self.metrics.recordFileMatched()
            records = self._readFile(path)
            if records is None:
                continue

            self.metrics.recordFileLoaded()
            self.logger.info(f"Loaded {len(records)} record(s) from {path.name}")

            for record in records:
                yield path.name, record

    def _readFile(self, path: Path):
        try:
            # PowerShell exports often carry a UTF-8 BOM
            with open(path, 'r', encoding='utf-8-sig') as f:
                content = json.load(f)
        except (OSError, ValueError) as e:
            self._fileFailed(path, e)
            return None

        if isinstance(content, dict):
            content = [content]
        elif not isinstance(content, list):
            self._fileFailed(
                path,
                ValueError(f"top-level value is {type(content).__name__}, expected object or array")
            )
            return None

        records = []
        for position, element in enumerate(content):
            if isinstance(element, dict):
                records.append(element)
            else:
                self.metrics.recordElementSkipped()
                self.logger.warning(
                    f"Skipping element {position} in {path.name}: "
                    f"{type(element).__name__} is not an audit record"
                )
        return records

    def _fileFailed(self, path: Path, error: Exception) -> None:
        self.metrics.recordFileFailed(path.name, str(error))
        self.metrics.record_error('ingestion')
        self.handleError(error, f"loading {path.name}")

    def retrievalPartial(self) -> bool:
        """
        Read the retrieval collaborator's status marker.

        A missing marker means no partial fetch was signaled. A marker that
        cannot be read is treated as partial so the report is never presented
        as complete on doubtful grounds.
        """
        statusPath = Path(self.config.caseDirectory) / self.config.statusFile
        if not statusPath.is_file():
            return False

        try:
            with open(statusPath, 'r', encoding='utf-8-sig') as f:
                status = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Unreadable retrieval status {statusPath.name}, assuming partial data: {e}")
            return True

        if not isinstance(status, dict):
            self.logger.warning(f"Unexpected retrieval status content in {statusPath.name}, assuming partial data")
            return True

        if status.get('partial') is True:
            return True
        state = str(status.get('status', 'complete')).strip().lower()
        return state != 'complete'
