from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Tuple
from datetime import datetime
from enum import Enum


class ValueKind(Enum):
    SCALAR = "scalar"
    MAPPING = "mapping"
    SEQUENCE = "sequence"


def valueKind(value: Any) -> ValueKind:
    if isinstance(value, dict):
        return ValueKind.MAPPING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    return ValueKind.SCALAR


def describePayload(payload: Optional[Dict[str, Any]]) -> List[Tuple[str, ValueKind, Any]]:
    """Ordered (key, kind, value) triples for every top-level payload property."""
    if not payload:
        return []
    return [(str(key), valueKind(value), value) for key, value in payload.items()]


@dataclass
class NormalizedEvent:
    recordId: str
    recordType: str
    operation: str
    creationTime: Optional[datetime]   # aware UTC, None when unparseable
    creationTimeRaw: str
    actor: str

    # None means the payload was present but could not be parsed
    payload: Optional[Dict[str, Any]] = field(default_factory=dict)
    payloadRaw: Optional[str] = None
    payloadKinds: List[Tuple[str, ValueKind]] = field(default_factory=list)

    sourceAddress: Optional[str] = None
    # recordId was derived from file and position, not read from the record
    syntheticId: bool = False
    sourceFile: str = ''
    ingestionIndex: int = 0
    extraFields: Dict[str, Any] = field(default_factory=dict)

    workload: Optional[str] = None
    intent: Optional[str] = None

    @property
    def payloadParsed(self) -> bool:
        return self.payload is not None

    @property
    def classified(self) -> bool:
        return self.workload is not None and self.intent is not None

    def assignLabels(self, workload: str, intent: str) -> None:
        if self.classified:
            raise ValueError(f"Event {self.recordId} is already classified")
        if not workload or not intent:
            raise ValueError("Classification labels must be non-empty")
        self.workload = workload
        self.intent = intent

    def toDict(self) -> Dict[str, Any]:
        return {
            'recordId': self.recordId,
            'recordType': self.recordType,
            'operation': self.operation,
            'creationTime': self.creationTime.isoformat() if self.creationTime else None,
            'creationTimeRaw': self.creationTimeRaw,
            'actor': self.actor,
            'payload': self.payload,
            'payloadRaw': self.payloadRaw,
            'sourceAddress': self.sourceAddress,
            'sourceFile': self.sourceFile,
            'ingestionIndex': self.ingestionIndex,
            'syntheticId': self.syntheticId,
            'extraFields': self.extraFields,
            'workload': self.workload,
            'intent': self.intent
        }

