"""
Reporting Module

Aggregates classified events, renders event cards and assembles them into a
single self-contained HTML report.
"""

from .aggregator import AggregateSummary, EventAggregator, rankCounts
from .cards import CardProperty, EventCard, CardRenderer, resolveTimezone, formatLocalTimestamp
from .document import NavLink, ReportDocument, ReportMetadata, Section, SummaryTable
from .assembler import ReportAssembler, sortCards
from .html_writer import HtmlReportWriter

__all__ = [
    'AggregateSummary',
    'EventAggregator',
    'rankCounts',
    'CardProperty',
    'EventCard',
    'CardRenderer',
    'resolveTimezone',
    'formatLocalTimestamp',
    'NavLink',
    'ReportDocument',
    'ReportMetadata',
    'Section',
    'SummaryTable',
    'ReportAssembler',
    'sortCards',
    'HtmlReportWriter',
]
