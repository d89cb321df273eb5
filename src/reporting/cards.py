"""
Card Renderer

Turns one NormalizedEvent into a display card: a fixed header (local time,
operation, actor, workload) and a body listing every payload property.

Scalars become text; nested mappings and sequences become collapsible blocks
holding their full JSON. Payload shapes vary per operation, so properties are
never flattened into named columns and never omitted. An unparsed payload is
shown verbatim under a single "Raw Data" entry.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional
import json
import logging

from dateutil import tz

from normalization.schema import NormalizedEvent, ValueKind


RAW_DATA_KEY = "Raw Data"


@dataclass(frozen=True)
class CardProperty:
    key: str
    kind: str  # scalar, block or raw
    text: str

    @property
    def collapsible(self) -> bool:
        return self.kind != 'scalar'


@dataclass
class EventCard:
    eventId: str
    ingestionIndex: int
    sortTime: Optional[datetime]
    timestampText: str
    operation: str
    actor: str
    workload: str
    intent: str
    recordType: str
    sourceAddress: Optional[str] = None
    sourceFile: str = ''
    payloadParsed: bool = True
    properties: List[CardProperty] = field(default_factory=list)
    recordFields: Optional[str] = None

    @property
    def propertyKeys(self) -> List[str]:
        return [prop.key for prop in self.properties]


def resolveTimezone(name: Optional[str] = None) -> tzinfo:
    """Observer time zone: an IANA name when given, else the machine's local zone."""
    if not name:
        return tz.tzlocal()
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown time zone: {name}")
    return zone


def formatLocalTimestamp(moment: datetime, zone: tzinfo) -> str:
    """Render an aware instant as local wall-clock time with an explicit UTC offset.

    Instants at the edge of the datetime range that cannot be shifted into
    the observer zone are shown in UTC.
    """
    try:
        local = moment.astimezone(zone)
    except (OverflowError, ValueError):
        local = moment.astimezone(timezone.utc)
    offset = local.utcoffset()
    totalMinutes = int(offset.total_seconds() // 60) if offset is not None else 0
    sign = '+' if totalMinutes >= 0 else '-'
    hours, minutes = divmod(abs(totalMinutes), 60)
    return f"{local:%Y-%m-%d %H:%M:%S} UTC{sign}{hours:02d}:{minutes:02d}"


def scalarText(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def blockText(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class CardRenderer:

    def __init__(self, zone: Optional[tzinfo] = None):
        self.zone = zone or tz.tzlocal()
        self.logger = logging.getLogger(self.__class__.__name__)

    def render(self, event: NormalizedEvent) -> EventCard:
        if event.creationTime is not None:
            timestampText = formatLocalTimestamp(event.creationTime, self.zone)
        else:
            timestampText = event.creationTimeRaw or 'Unknown time'

        return EventCard(
            eventId=event.recordId,
            ingestionIndex=event.ingestionIndex,
            sortTime=event.creationTime,
            timestampText=timestampText,
            operation=event.operation,
            actor=event.actor,
            workload=event.workload or 'Other',
            intent=event.intent or 'Other',
            recordType=event.recordType,
            sourceAddress=event.sourceAddress,
            sourceFile=event.sourceFile,
            payloadParsed=event.payloadParsed,
            properties=self.renderProperties(event),
            recordFields=blockText(event.extraFields) if event.extraFields else None
        )

    def renderAll(self, events: List[NormalizedEvent]) -> List[EventCard]:
        return [self.render(event) for event in events]

    def renderProperties(self, event: NormalizedEvent) -> List[CardProperty]:
        if not event.payloadParsed:
            return [CardProperty(key=RAW_DATA_KEY, kind='raw', text=event.payloadRaw or '')]

        properties = []
        for key, kind in event.payloadKinds:
            value = event.payload[key]
            if kind == ValueKind.SCALAR:
                properties.append(CardProperty(key=key, kind='scalar', text=scalarText(value)))
            else:
                properties.append(CardProperty(key=key, kind='block', text=blockText(value)))
        return properties


def cardsByWorkload(cards: List[EventCard], labels: List[str]) -> Dict[str, List[EventCard]]:
    grouped: Dict[str, List[EventCard]] = {label: [] for label in labels}
    for card in cards:
        grouped.setdefault(card.workload, []).append(card)
    return grouped
