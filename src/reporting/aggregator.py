# Summary statistics for the report's summary section

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Tuple, Iterable
from datetime import datetime
import logging

from normalization.schema import NormalizedEvent


Ranking = List[Tuple[str, int]]


@dataclass
class AggregateSummary:
    totalEvents: int = 0
    byWorkload: Ranking = field(default_factory=list)
    byIntent: Ranking = field(default_factory=list)
    topOperations: Ranking = field(default_factory=list)
    topSourceAddresses: Ranking = field(default_factory=list)
    topActors: Ranking = field(default_factory=list)
    unparsedPayloads: int = 0
    firstEventTime: Optional[datetime] = None
    lastEventTime: Optional[datetime] = None
    # TODO: mass-delete, impossible-travel and IP/client correlation findings
    # land here once their thresholds and time windows are agreed.
    findings: Dict[str, Any] = field(default_factory=dict)

    def share(self, count: int) -> float:
        return (count / self.totalEvents * 100.0) if self.totalEvents else 0.0


def rankCounts(values: Iterable[Optional[str]], limit: Optional[int] = None) -> Ranking:
    """
    Count values, most frequent first.

    Ties keep first-seen order; None and empty values are not counted.
    """
    counts: Dict[str, int] = {}
    for value in values:
        if value is None or value == '':
            continue
        counts[value] = counts.get(value, 0) + 1

    # sorted() is stable, dict preserves insertion order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit] if limit is not None else ranked


class EventAggregator:

    def __init__(self, topN: int = 10):
        if topN < 1:
            raise ValueError(f"topN must be positive: {topN}")
        self.topN = topN
        self.logger = logging.getLogger(self.__class__.__name__)

    def summarize(self, events: List[NormalizedEvent]) -> AggregateSummary:
        timestamps = [event.creationTime for event in events if event.creationTime is not None]

        summary = AggregateSummary(
            totalEvents=len(events),
            byWorkload=rankCounts(event.workload for event in events),
            byIntent=rankCounts(event.intent for event in events),
            topOperations=rankCounts((event.operation for event in events), self.topN),
            topSourceAddresses=rankCounts((event.sourceAddress for event in events), self.topN),
            topActors=rankCounts((event.actor for event in events), self.topN),
            unparsedPayloads=sum(1 for event in events if not event.payloadParsed),
            firstEventTime=min(timestamps) if timestamps else None,
            lastEventTime=max(timestamps) if timestamps else None
        )

        self.logger.info(
            f"Summarized {summary.totalEvents} event(s) across {len(summary.byWorkload)} workload(s)"
        )
        return summary
