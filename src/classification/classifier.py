# Classifier
# Assigns the (workload, intent) label pair that drives the report grouping.

from typing import Iterable, List, Optional, Tuple
import logging

from normalization.schema import NormalizedEvent
from classification.rules import RuleSet, DEFAULT_RULES, firstMatch


def classifyFields(
    recordType: str,
    operation: str,
    rules: RuleSet = DEFAULT_RULES
) -> Tuple[str, str]:
    """
    Map a record type and operation to (workload, intent).

    Pure and total: both axes are evaluated independently, the first
    matching rule in priority order wins and no match yields "Other".
    """
    return firstMatch(rules.workload, recordType), firstMatch(rules.intent, operation)


def classify(event: NormalizedEvent, rules: RuleSet = DEFAULT_RULES) -> Tuple[str, str]:
    return classifyFields(event.recordType, event.operation, rules)


class Classifier:

    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules or DEFAULT_RULES
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def workloadLabels(self) -> List[str]:
        return self.rules.workloadLabels

    @property
    def intentLabels(self) -> List[str]:
        return self.rules.intentLabels

    def classify(self, event: NormalizedEvent) -> NormalizedEvent:
        workload, intent = classify(event, self.rules)
        event.assignLabels(workload, intent)
        return event

    def classifyAll(self, events: Iterable[NormalizedEvent]) -> List[NormalizedEvent]:
        classified = [self.classify(event) for event in events]
        self.logger.info(f"Classified {len(classified)} event(s)")
        return classified
