from dataclasses import dataclass
from typing import Iterable, List, Optional
import json
import logging

from normalization.schema import NormalizedEvent


@dataclass(frozen=True)
class EventFilter:
    """
    Conjunctive event filter.

    recordType and operation are whole-value matches (case-insensitive);
    searchText is a case-insensitive substring over the JSON serialization
    of the event's audit content, parsed payload included. Unset criteria match
    everything.
    """
    recordType: Optional[str] = None
    operation: Optional[str] = None
    searchText: Optional[str] = None

    @property
    def active(self) -> bool:
        return any(_isSet(value) for value in (self.recordType, self.operation, self.searchText))

    def matches(self, event: NormalizedEvent) -> bool:
        if _isSet(self.recordType) and event.recordType.casefold() != self.recordType.strip().casefold():
            return False

        if _isSet(self.operation) and event.operation.casefold() != self.operation.strip().casefold():
            return False

        if _isSet(self.searchText):
            needle = self.searchText.casefold()
            if needle not in serializeEvent(event).casefold():
                return False

        return True

    def apply(self, events: Iterable[NormalizedEvent]) -> List[NormalizedEvent]:
        logger = logging.getLogger(self.__class__.__name__)

        events = list(events)
        if not self.active:
            return events

        selected = [event for event in events if self.matches(event)]
        logger.info(f"Filter [{self.describe()}] kept {len(selected)} of {len(events)} event(s)")
        return selected

    def describe(self) -> str:
        parts = []
        if _isSet(self.recordType):
            parts.append(f"RecordType = {self.recordType.strip()}")
        if _isSet(self.operation):
            parts.append(f"Operation = {self.operation.strip()}")
        if _isSet(self.searchText):
            parts.append(f"Text contains \"{self.searchText}\"")
        return '; '.join(parts) if parts else 'None'


# Run metadata added by the pipeline, not part of the audit record
RUN_FIELDS = ('sourceFile', 'ingestionIndex', 'syntheticId', 'creationTime', 'workload', 'intent')


def serializeEvent(event: NormalizedEvent) -> str:
    """JSON of the audit content of an event: field values, payload and unmapped record fields."""
    data = event.toDict()
    if event.syntheticId:
        data.pop('recordId')
    if event.payloadParsed:
        data.pop('payloadRaw')

    content = [value for key, value in data.items() if key not in RUN_FIELDS]
    return json.dumps(content, ensure_ascii=False, default=str)


def _isSet(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ''
