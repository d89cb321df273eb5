"""
Classification Module

Labels every event along two independent axes using ordered pattern rules:
- Workload: the product surface that emitted the record
- Intent: the purpose of the operation
"""

from .rules import ClassificationRule, RuleSet, DEFAULT_RULES, loadRuleSet, OTHER
from .classifier import Classifier, classify, classifyFields

__all__ = [
    'ClassificationRule',
    'RuleSet',
    'DEFAULT_RULES',
    'loadRuleSet',
    'OTHER',
    'Classifier',
    'classify',
    'classifyFields',
]
