# Report document tree, built by the assembler and serialized once.

from dataclasses import dataclass, field
from typing import List, Optional

from .cards import EventCard


@dataclass(frozen=True)
class NavLink:
    target: str
    label: str
    count: Optional[int] = None


@dataclass
class SummaryTable:
    title: str
    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)
    emptyMessage: str = 'No data.'


@dataclass
class Section:
    sectionId: str
    title: str
    tables: List[SummaryTable] = field(default_factory=list)
    cards: List[EventCard] = field(default_factory=list)
    emptyMessage: Optional[str] = None
    description: Optional[str] = None

    @property
    def isEmpty(self) -> bool:
        return not self.tables and not self.cards


@dataclass(frozen=True)
class ReportMetadata:
    caseId: Optional[str] = None
    targetUser: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    generatedAt: str = ''
    filterDescription: str = 'None'
    sourceDirectory: Optional[str] = None

    @property
    def dateRange(self) -> str:
        if self.startDate and self.endDate:
            return f"{self.startDate} to {self.endDate}"
        if self.startDate:
            return f"from {self.startDate}"
        if self.endDate:
            return f"until {self.endDate}"
        return 'Not specified'


@dataclass
class ReportDocument:
    title: str
    metadata: ReportMetadata
    partial: bool = False
    partialReasons: List[str] = field(default_factory=list)
    navigation: List[NavLink] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)

    def section(self, sectionId: str) -> Optional[Section]:
        for section in self.sections:
            if section.sectionId == sectionId:
                return section
        return None
