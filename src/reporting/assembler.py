# Report Assembler
# Composes navigation, case header, summary, timeline and per-workload sections.

from typing import Dict, Any, List, Optional
from datetime import datetime, timezone, tzinfo
import logging
import re

from dateutil import tz

from .aggregator import AggregateSummary, Ranking
from .cards import EventCard, cardsByWorkload, formatLocalTimestamp
from .document import NavLink, ReportDocument, ReportMetadata, Section, SummaryTable


_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def sortCards(cards: List[EventCard]) -> List[EventCard]:
    """Ascending by timestamp, ties by ingestion order, undated events last."""
    return sorted(
        cards,
        key=lambda card: (card.sortTime is None, card.sortTime or _UNDATED, card.ingestionIndex)
    )


def sectionSlug(label: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', label.lower()).strip('-')
    return f"workload-{slug or 'other'}"


class ReportAssembler:

    def __init__(
        self,
        title: str,
        workloadLabels: List[str],
        zone: Optional[tzinfo] = None
    ):
        self.title = title
        self.workloadLabels = list(workloadLabels)
        self.zone = zone or tz.tzlocal()
        self.logger = logging.getLogger(self.__class__.__name__)

    def assemble(
        self,
        summary: AggregateSummary,
        cards: List[EventCard],
        metadata: ReportMetadata,
        retrievalPartial: bool = False,
        failedFiles: Optional[List[Dict[str, Any]]] = None
    ) -> ReportDocument:
        failedFiles = failedFiles or []

        partialReasons = []
        if retrievalPartial:
            partialReasons.append(
                "The log retrieval did not complete; events outside the retrieved window may be missing."
            )
        if failedFiles:
            partialReasons.append(
                f"{len(failedFiles)} export file(s) could not be loaded; their events are not included."
            )

        timeline = sortCards(cards)
        grouped = cardsByWorkload(timeline, self.workloadLabels)

        sections = [
            self._buildSummary(summary, failedFiles),
            Section(
                sectionId='timeline',
                title='Timeline',
                cards=timeline,
                emptyMessage='No events in this report.',
                description='All events in chronological order.'
            )
        ]

        for label, workloadCards in grouped.items():
            sections.append(Section(
                sectionId=sectionSlug(label),
                title=label,
                cards=workloadCards,
                emptyMessage=f"No {label} events in this dataset."
            ))

        navigation = [NavLink(target='case', label='Case')]
        for section in sections:
            count = len(section.cards) if section.sectionId != 'summary' else None
            navigation.append(NavLink(target=section.sectionId, label=section.title, count=count))

        document = ReportDocument(
            title=self.title,
            metadata=metadata,
            partial=bool(partialReasons),
            partialReasons=partialReasons,
            navigation=navigation,
            sections=sections
        )

        self.logger.info(
            f"Assembled report with {len(sections)} section(s) and {len(timeline)} event card(s)"
            + (" [PARTIAL DATA]" if document.partial else "")
        )
        return document

    def _buildSummary(self, summary: AggregateSummary, failedFiles: List[Dict[str, Any]]) -> Section:
        overview = SummaryTable(
            title='Overview',
            headers=['Metric', 'Value'],
            rows=[
                ['Total events', str(summary.totalEvents)],
                ['First event', self._formatTime(summary.firstEventTime)],
                ['Last event', self._formatTime(summary.lastEventTime)],
                ['Unparsed payloads', str(summary.unparsedPayloads)],
                ['Files not loaded', str(len(failedFiles))]
            ]
        )

        tables = [
            overview,
            self._rankingTable('Events by Workload', 'Workload', summary.byWorkload, summary),
            self._rankingTable('Events by Intent', 'Intent', summary.byIntent, summary),
            self._rankingTable('Top Operations', 'Operation', summary.topOperations, summary),
            self._rankingTable(
                'Top Source Addresses', 'Source Address', summary.topSourceAddresses, summary,
                emptyMessage='No source addresses recorded.'
            ),
            self._rankingTable('Top Actors', 'Actor', summary.topActors, summary)
        ]

        if failedFiles:
            tables.append(SummaryTable(
                title='Load Issues',
                headers=['File', 'Reason'],
                rows=[[str(item.get('file', '')), str(item.get('reason', ''))] for item in failedFiles]
            ))

        return Section(sectionId='summary', title='Summary', tables=tables)

    def _rankingTable(
        self,
        title: str,
        label: str,
        ranking: Ranking,
        summary: AggregateSummary,
        emptyMessage: str = 'No data.'
    ) -> SummaryTable:
        return SummaryTable(
            title=title,
            headers=[label, 'Count', 'Share'],
            rows=[[name, str(count), f"{summary.share(count):.1f}%"] for name, count in ranking],
            emptyMessage=emptyMessage
        )

    def _formatTime(self, moment: Optional[datetime]) -> str:
        return formatLocalTimestamp(moment, self.zone) if moment else 'n/a'
