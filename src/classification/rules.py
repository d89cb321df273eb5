# Ordered pattern rules for the workload and intent axes

from typing import Dict, Any, List, Optional
from dataclasses import dataclass
import logging
import yaml
from pathlib import Path
import re


OTHER = "Other"

FILE_ACTIVITY = "File Activity"
IDENTITY_ACCESS = "Identity & Access"
EXCHANGE = "Exchange"
BUSINESS_APPS = "Business Apps"
COLLABORATION = "Collaboration"

ACCESS_READ = "Access/Read"
MODIFICATION = "Modification"
EXFILTRATION_RISK = "Exfiltration Risk"
DELETION = "Deletion"

WORKLOAD_LABELS = [FILE_ACTIVITY, IDENTITY_ACCESS, EXCHANGE, BUSINESS_APPS, COLLABORATION, OTHER]
INTENT_LABELS = [ACCESS_READ, MODIFICATION, EXFILTRATION_RISK, DELETION, OTHER]


@dataclass(frozen=True)
class ClassificationRule:
    pattern: re.Pattern
    label: str

    def matches(self, value: str) -> bool:
        return bool(self.pattern.search(value or ''))

    @classmethod
    def build(cls, pattern: str, label: str) -> 'ClassificationRule':
        return cls(pattern=re.compile(pattern, re.IGNORECASE), label=label)

    @classmethod
    def from_yaml(cls, rule_data: Dict[str, Any]) -> 'ClassificationRule':
        if not isinstance(rule_data, dict) or 'pattern' not in rule_data or 'label' not in rule_data:
            raise ValueError(f"Classification rule needs 'pattern' and 'label': {rule_data!r}")
        label = str(rule_data['label']).strip()
        if not label:
            raise ValueError(f"Classification rule has an empty label: {rule_data!r}")
        return cls.build(str(rule_data['pattern']), label)


# Evaluated against the record type, first match wins
DEFAULT_WORKLOAD_RULES: List[ClassificationRule] = [
    ClassificationRule.build(r'sharepoint|onedrive', FILE_ACTIVITY),
    ClassificationRule.build(r'azureactivedirectory|azuread', IDENTITY_ACCESS),
    ClassificationRule.build(r'exchange', EXCHANGE),
    ClassificationRule.build(r'crm|powerplatform|powerapps|powerautomate|dynamics', BUSINESS_APPS),
    ClassificationRule.build(r'teams', COLLABORATION),
]

# Evaluated against the operation, first match wins
DEFAULT_INTENT_RULES: List[ClassificationRule] = [
    ClassificationRule.build(r'access|preview|log(?:ged)?[-_ ]?in|log(?:ged)?[-_ ]?on', ACCESS_READ),
    ClassificationRule.build(r'modif|set|update', MODIFICATION),
    ClassificationRule.build(r'download|sync', EXFILTRATION_RISK),
    ClassificationRule.build(r'delete|recycle', DELETION),
]


@dataclass(frozen=True)
class RuleSet:
    workload: List[ClassificationRule]
    intent: List[ClassificationRule]

    @property
    def workloadLabels(self) -> List[str]:
        return _orderedLabels(self.workload)

    @property
    def intentLabels(self) -> List[str]:
        return _orderedLabels(self.intent)


DEFAULT_RULES = RuleSet(workload=DEFAULT_WORKLOAD_RULES, intent=DEFAULT_INTENT_RULES)


def firstMatch(rules: List[ClassificationRule], value: str) -> str:
    for rule in rules:
        if rule.matches(value):
            return rule.label
    return OTHER


def _orderedLabels(rules: List[ClassificationRule]) -> List[str]:
    labels: List[str] = []
    for rule in rules:
        if rule.label not in labels:
            labels.append(rule.label)
    if OTHER not in labels:
        labels.append(OTHER)
    return labels


def loadRuleSet(rules_path: Optional[Path]) -> RuleSet:
    """
    Load classification rules from a YAML file.

    The file holds optional 'workload' and 'intent' lists of
    {pattern, label} entries in priority order. An axis missing from the
    file keeps the default taxonomy.

    Raises:
        FileNotFoundError: If the rules file does not exist
        ValueError: If the file content is malformed
    """
    logger = logging.getLogger('RuleSet')

    if rules_path is None:
        return DEFAULT_RULES

    rules_path = Path(rules_path)
    if not rules_path.exists():
        raise FileNotFoundError(f"Classification rules file not found: {rules_path}")

    try:
        with open(rules_path, 'r', encoding='utf-8') as f:
            rule_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in classification rules file {rules_path}: {e}") from e

    if not isinstance(rule_data, dict):
        raise ValueError(f"Classification rules file must hold a mapping: {rules_path}")

    def _axis(name: str, default: List[ClassificationRule]) -> List[ClassificationRule]:
        entries = rule_data.get(name)
        if entries is None:
            return default
        if not isinstance(entries, list):
            raise ValueError(f"'{name}' rules must be a list in {rules_path}")
        try:
            return [ClassificationRule.from_yaml(entry) for entry in entries]
        except re.error as e:
            raise ValueError(f"Invalid {name} pattern in {rules_path}: {e}") from e

    ruleSet = RuleSet(
        workload=_axis('workload', DEFAULT_WORKLOAD_RULES),
        intent=_axis('intent', DEFAULT_INTENT_RULES)
    )

    logger.info(
        f"Loaded {len(ruleSet.workload)} workload and {len(ruleSet.intent)} intent rules "
        f"from {rules_path.name}"
    )
    return ruleSet
